from .tools import StorefrontTools, build_tools

__all__ = ["StorefrontTools", "build_tools"]
