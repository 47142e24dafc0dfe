"""Exception taxonomy shared across registry, state and resolution modules."""


class ModkeeperError(Exception):
    """Base class for all expected, reportable failures."""


class RegistryError(ModkeeperError):
    """Transport failure or unexpected payload from the mod registry."""


class ModNotFoundError(RegistryError):
    """The registry does not know the requested mod id."""

    def __init__(self, mod_id: str, message: str = ""):
        super().__init__(message or f"Mod {mod_id} not found")
        self.mod_id = mod_id


class ModNotSupportedError(RegistryError):
    """The mod exists but has no artifact for the current loader and game version."""

    def __init__(self, mod_id: str, message: str = ""):
        super().__init__(message or f"Mod {mod_id} not supported")
        self.mod_id = mod_id


class IntegrityError(ModkeeperError):
    """A downloaded artifact does not match its expected content hash."""


class StateError(ModkeeperError):
    """The manifest or lockfile is missing or cannot be parsed."""
