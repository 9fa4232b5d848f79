"""Command modules loaded into the bot."""

from .info import InfoCog
from .module_info import ModuleInfo, ModuleInfoManager, parse_module_info
from .status import StatusCog

__all__ = ["InfoCog", "ModuleInfo", "ModuleInfoManager", "parse_module_info", "StatusCog"]
