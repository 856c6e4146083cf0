"""Workers domain - worker directory and login credential lifecycle"""

from .router import router

__all__ = ["router"]
