from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_EXPIRED = "AUTH_EXPIRED"
    LOGIN_FAILED = "LOGIN_FAILED"
    BLOCK_NOT_FOUND = "BLOCK_NOT_FOUND"
    VARIANT_NOT_FOUND = "VARIANT_NOT_FOUND"
    VARIANT_INDEX_OUT_OF_RANGE = "VARIANT_INDEX_OUT_OF_RANGE"
    CODE_FETCH_FAILED = "CODE_FETCH_FAILED"
    CATALOG_EMPTY = "CATALOG_EMPTY"
    INVALID_INPUT = "INVALID_INPUT"
    BROWSER_UNAVAILABLE = "BROWSER_UNAVAILABLE"


class PlusBlocksError(Exception):
    """Raised for all expected failure conditions.

    Caught by server.py and serialised into the MCP error response, and by
    cli.py which prints the message and suggestion. ``recoverable`` is False
    for failures a retry cannot fix; the retry executor honours it when the
    caller asks it to.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class AuthRequiredError(PlusBlocksError):
    """No session cookies are stored."""

    def __init__(self, message: str = "Not authenticated with Tailwind Plus.") -> None:
        super().__init__(
            code=ErrorCode.AUTH_REQUIRED,
            message=message,
            suggestion="Run 'plusblocks login' to sign in and save a session.",
            recoverable=False,
        )


class AuthExpiredError(AuthRequiredError):
    """Cookies are stored but the site redirected to its login page."""

    def __init__(self) -> None:
        super().__init__("Session expired: the site redirected to the login page.")
        self.code = ErrorCode.AUTH_EXPIRED


class LoginFailedError(PlusBlocksError):
    def __init__(self, message: str) -> None:
        super().__init__(
            code=ErrorCode.LOGIN_FAILED,
            message=message,
            suggestion="Run 'plusblocks login' again and finish signing in within 5 minutes.",
            recoverable=True,
        )


class BlockNotFoundError(PlusBlocksError):
    def __init__(self, context: str, block: str) -> None:
        super().__init__(
            code=ErrorCode.BLOCK_NOT_FOUND,
            message=f"Block '{block}' not found in context '{context}'.",
            suggestion="Use list_blocks to see available blocks, or run sync-catalog.",
            recoverable=False,
        )
        self.context = context
        self.block = block


class VariantNotFoundError(PlusBlocksError):
    def __init__(self, block: str, variant: str) -> None:
        super().__init__(
            code=ErrorCode.VARIANT_NOT_FOUND,
            message=f"Variant '{variant}' not found in block '{block}'.",
            suggestion="Use list_variants to see the variants of this block.",
            recoverable=False,
        )
        self.block = block
        self.variant = variant


class VariantIndexOutOfRangeError(PlusBlocksError):
    """The page shows fewer variants than the requested index needs."""

    def __init__(self, requested: int, actual: int) -> None:
        super().__init__(
            code=ErrorCode.VARIANT_INDEX_OUT_OF_RANGE,
            message=f"Variant index {requested} out of range: the page has {actual} variants.",
            suggestion="Re-run sync-catalog for this block to refresh its variant list.",
            recoverable=False,
        )
        self.requested = requested
        self.actual = actual


class CodeFetchError(PlusBlocksError):
    """Every code-location strategy failed for one variant."""

    def __init__(self, variant_index: int) -> None:
        super().__init__(
            code=ErrorCode.CODE_FETCH_FAILED,
            message=f"Could not extract code for variant {variant_index}.",
            suggestion="The page layout may have changed. Retry later or report the block.",
            recoverable=True,
        )
        self.variant_index = variant_index


class CatalogEmptyError(PlusBlocksError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.CATALOG_EMPTY,
            message="The block catalog is empty.",
            suggestion="Run 'plusblocks sync-catalog' to discover blocks and variants.",
            recoverable=False,
        )


def is_retryable(exc: BaseException) -> bool:
    """Retry predicate that refuses to retry deterministic failures."""
    if isinstance(exc, PlusBlocksError):
        return exc.recoverable
    return True


class BrowserUnavailableError(PlusBlocksError):
    """No usable Chromium could be found or installed."""

    def __init__(self, message: str) -> None:
        super().__init__(
            code=ErrorCode.BROWSER_UNAVAILABLE,
            message=message,
            suggestion=(
                "Install Chrome or Chromium, or set CHROME_PATH to an existing browser executable."
            ),
            recoverable=False,
        )
