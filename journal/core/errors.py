from typing import List, Optional


class JournalError(Exception):
    """Базовая ошибка приложения"""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(JournalError):
    """Отсутствующие или слишком большие поля"""

    status_code = 400

    def __init__(self, message: str = "Validation failed", errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class InvalidEntry(ValidationError):
    """Запись нельзя сохранить: нет id или userId"""


class Unauthorized(JournalError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFound(JournalError):
    status_code = 404

    def __init__(self, message: str = "Entry not found"):
        super().__init__(message)


class StorageFailure(JournalError):
    """Ошибка ввода-вывода хранилища"""

    status_code = 500

    def __init__(self, message: str = "Storage failure"):
        super().__init__(message)


class InternalError(JournalError):
    status_code = 500
