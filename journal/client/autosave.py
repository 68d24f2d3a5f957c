import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 5.0  # секунды


class AutoSaveStatus(str, Enum):
    SAVED = "saved"
    PENDING = "pending"
    SAVING = "saving"
    ERROR = "error"


class AutoSaveController:
    """Автосохранение с задержкой (debounce) и статусом для UI.

    Каждое изменение, отличное от сохраненного (или сохраняемого сейчас)
    содержимого, перезапускает таймер; по таймеру сохраняется самое
    свежее содержимое.
    Сохранения выполняются строго по одному. После ошибки повторная
    попытка будет только при следующем изменении или вызове flush().
    """

    def __init__(
        self,
        save_func: Callable[[str], Awaitable[object]],
        initial_content: Optional[str] = None,
        delay: float = DEFAULT_DELAY,
        on_status_change: Optional[Callable[[AutoSaveStatus], None]] = None,
    ):
        self.save_func = save_func
        self.delay = delay
        self.on_status_change = on_status_change
        self.status = AutoSaveStatus.SAVED
        self.last_error: Optional[BaseException] = None

        self._saved_content = initial_content
        self._latest_content = initial_content
        self._saving_content: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def saved_content(self) -> Optional[str]:
        return self._saved_content

    def _set_status(self, status: AutoSaveStatus) -> None:
        if status == self.status:
            return
        self.status = status
        if self.on_status_change is not None:
            self.on_status_change(status)

    def _baseline(self) -> Optional[str]:
        """Содержимое, которое окажется на сервере без новых сохранений"""
        if self._saving_content is not None:
            return self._saving_content
        return self._saved_content

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def update(self, content: str) -> None:
        """Новое содержимое из редактора; вызывать из работающего event loop"""
        if self._closed:
            raise RuntimeError("AutoSaveController is closed")

        self._cancel_timer()
        self._latest_content = content

        if content == self._baseline():
            if self.status == AutoSaveStatus.PENDING:
                in_flight = self._saving_content is not None
                self._set_status(AutoSaveStatus.SAVING if in_flight else AutoSaveStatus.SAVED)
            return

        self._set_status(AutoSaveStatus.PENDING)
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._on_timer, content)

    def _on_timer(self, content: str) -> None:
        self._timer = None
        if self._closed:
            return
        task = asyncio.ensure_future(self._save(content))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _save(self, content: str) -> bool:
        async with self._lock:
            if self._closed:
                return False

            self._set_status(AutoSaveStatus.SAVING)
            self._saving_content = content
            try:
                await self.save_func(content)
            except Exception as e:
                logger.error(f"Auto-save failed: {e}")
                self.last_error = e
                if not self._closed:
                    self._set_status(AutoSaveStatus.ERROR)
                return False
            finally:
                self._saving_content = None

            self._saved_content = content
            self.last_error = None
            if not self._closed:
                # пока сохраняли, могло прийти новое изменение
                pending = self._timer is not None or self._latest_content != content
                self._set_status(AutoSaveStatus.PENDING if pending else AutoSaveStatus.SAVED)
            return True

    async def flush(self) -> bool:
        """Сохранить немедленно, без ожидания таймера"""
        if self._closed:
            raise RuntimeError("AutoSaveController is closed")

        self._cancel_timer()
        if self._latest_content is None:
            return True
        if self._saving_content is None and self._latest_content == self._saved_content:
            return True
        return await self._save(self._latest_content)

    async def wait(self) -> None:
        """Дождаться уже запущенных сохранений"""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def close(self) -> None:
        """Отмена отложенного сохранения при закрытии редактора.

        Уже начатый запрос к API не отменяется.
        """
        self._closed = True
        self._cancel_timer()
