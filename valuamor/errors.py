class EntitlementError(Exception):
    """Base class for failures reported back to the caller of an operation."""

    default_message = "❌ Terjadi kesalahan!"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(EntitlementError):
    default_message = "❌ Data tidak ditemukan!"


class CodeNotFoundError(NotFoundError):
    default_message = "❌ Kode tidak valid!"


class KeyNotFoundError(NotFoundError):
    default_message = "❌ Key tidak ditemukan!"


class RequestNotFoundError(NotFoundError):
    default_message = "❌ Request not found!"


class PanelNotFoundError(NotFoundError):
    default_message = "❌ Panel tidak ditemukan!"


class PremiumNotFoundError(NotFoundError):
    default_message = "❌ User tersebut tidak memiliki premium!"


class AlreadyUsedError(EntitlementError):
    default_message = "❌ Kode ini sudah digunakan!"


class AlreadyReviewedError(EntitlementError):
    default_message = "❌ This request has already been processed!"


class WrongScopeError(EntitlementError):
    default_message = "❌ Kode ini sudah digunakan di server lain!"


class InsufficientPermissionError(EntitlementError):
    default_message = "❌ Anda tidak memiliki izin untuk aksi ini!"


class UnconfiguredError(EntitlementError):
    default_message = "❌ Sistem belum dikonfigurasi! Hubungi admin."


class ExternalIOError(EntitlementError):
    default_message = "❌ Terjadi kesalahan saat menghubungi Discord."


class StaleStateError(Exception):
    """Raised when the stored document changed since it was loaded."""
