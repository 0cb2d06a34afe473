"""Configuration package (Facade).

This package acts as a small *Facade* over the underlying configuration modules.
Callers import the public config types from a single, stable path:

	from gcping.services.config import GcpingConfig

Both pipelines receive one of these objects, built once at startup, instead of
reading process-wide state.
"""

from gcping.services.config.gcping_config import GcpingConfig
from gcping.services.config.subnet_config import SubnetSetupConfig

__all__ = ["GcpingConfig", "SubnetSetupConfig"]
