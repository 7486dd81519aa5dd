"""Registry persistence for Portguard."""

from .config_store import STATE_SUFFIX, ConfigStore, ConfigStoreError, locate_state_file
from .models import ClientRecord, PersistedState

__all__ = [
    "STATE_SUFFIX",
    "ClientRecord",
    "ConfigStore",
    "ConfigStoreError",
    "PersistedState",
    "locate_state_file",
]
