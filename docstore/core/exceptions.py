from typing import Optional


class DocStoreError(Exception):
    """Базовая ошибка хранилища документов"""


class ValidationError(DocStoreError):
    """Некорректные входные данные клиента"""


class StorageError(DocStoreError):
    """Недоступная БД, ошибка запроса, исчерпание пула или таймаут"""


class ExportError(StorageError):
    """Ошибка на этапе массового чтения при экспорте"""

    def __init__(self, message: str, tip: Optional[str] = None):
        super().__init__(message)
        self.tip = tip
