from .catalog import TOOL_BINDINGS, ToolBinding, list_tool_descriptors
from .tools import ToolDispatcher

__all__ = ["TOOL_BINDINGS", "ToolBinding", "ToolDispatcher", "list_tool_descriptors"]
