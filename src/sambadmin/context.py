from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from sambadmin.accounts.cache import TTLCache
from sambadmin.config.settings import Config
from sambadmin.system.port import ExternalProcessPort, SambaToolsPort


@dataclass
class AppContext:
    """Everything a manager needs from the outside world, built once per process."""

    config: Config
    port: ExternalProcessPort
    clock: Callable[[], datetime] = datetime.now
    account_cache: TTLCache = field(default_factory=TTLCache)


def build_context(
    config: Optional[Config] = None,
    port: Optional[ExternalProcessPort] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> AppContext:
    config = config or Config()
    if port is None:
        port = SambaToolsPort(use_extrausers=config.use_extrausers, timeout=config.command_timeout)
    return AppContext(
        config=config,
        port=port,
        clock=clock or datetime.now,
        account_cache=TTLCache(ttl=config.account_cache_ttl),
    )
