class AppError:
    """Represents different categories of application errors."""

    def __init__(self, category: str, message: str) -> None:
        # 'validation', 'unauthorized', 'not_found', 'payload_too_large', 'storage_error', ...
        self.category = category
        self.message = message

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"AppError({self.category!r}, {self.message!r})"
