from .accounts import CreatorAccountError, CreatorAccountService

__all__ = ["CreatorAccountError", "CreatorAccountService"]
