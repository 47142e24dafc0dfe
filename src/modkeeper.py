"""modkeeper - keep a mods folder in sync with a declared mod list.

    Returns:
        int: Exit code
"""
import logging
import os
import signal
import sys

from constants import ExitCodes
from common.cancellation import CancellationToken, OperationCancelled
from common.errors import RegistryError, StateError
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from cli_config import apply_config_overrides

logger = logging.getLogger(__name__)


def _setup_logging(args) -> None:
    """Configure logging based on CLI arguments."""
    # Honor CLI --loglevel by passing it to centralized logger via env
    if getattr(args, "LOG_LEVEL", None):
        os.environ["MODKEEPER_LOG_LEVEL"] = str(args.LOG_LEVEL).upper()
    configure_logging()
    try:
        level_name = str(getattr(args, "LOG_LEVEL", "INFO")).upper()
        logging.getLogger().setLevel(getattr(logging, level_name, logging.INFO))
    except (ValueError, AttributeError, TypeError):
        # Defensive: never break CLI on logging setup
        pass

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def run(args, token: CancellationToken) -> int:
    """Dispatch the parsed command. Exceptions propagate to :func:`main`."""
    # pylint: disable=import-outside-toplevel
    import cli_actions
    from registry.modrinth import ModrinthClient
    from state.workspace import Workspace

    if args.COMMAND == "init":
        return cli_actions.perform_init(args)

    workspace = Workspace.load(args.DIRECTORY)
    registry = ModrinthClient(token=token)
    handlers = {
        "add": cli_actions.perform_add,
        "remove": cli_actions.perform_remove,
        "update": cli_actions.perform_update,
        "check": cli_actions.perform_check,
        "change": cli_actions.perform_change,
        "list": cli_actions.perform_list,
    }
    return handlers[args.COMMAND](args, workspace, registry, token)


def main(argv=None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)
    apply_config_overrides(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main", target=args.COMMAND),
        )

    token = CancellationToken()

    def _on_interrupt(signum, frame):  # pylint: disable=unused-argument
        if token.cancelled:
            raise KeyboardInterrupt
        logger.warning("Cancelling...")
        token.cancel()

    previous = signal.signal(signal.SIGINT, _on_interrupt)
    try:
        code = run(args, token)
    except OperationCancelled:
        logger.error("Operation cancelled")
        code = ExitCodes.CANCELLED.value
    except KeyboardInterrupt:
        logger.error("Interrupted")
        code = ExitCodes.CANCELLED.value
    except StateError as exc:
        logger.error("%s", exc)
        code = ExitCodes.FILE_ERROR.value
    except RegistryError as exc:
        logger.error("Registry error: %s", exc)
        code = ExitCodes.CONNECTION_ERROR.value
    finally:
        signal.signal(signal.SIGINT, previous)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(event="function_exit", component="cli", action="main", outcome=str(code)),
        )
    return code


if __name__ == "__main__":
    sys.exit(main())
