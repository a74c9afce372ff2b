"""
Editor session boundary: seeding, import, export and coalesced change
notification for an external presentation layer.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Dict, Optional

from .config import EditorConfig
from .editor import SchemaEditor
from .inference import infer_schema

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.3

_NOTHING = object()


class ChangeNotifier:
    """
    Debounced document listener.

    Each call restarts a quiet-period timer; when it expires only the most
    recent document is serialized and handed to the callback.
    """

    def __init__(self, callback: Callable[[str], None], wait: float = DEBOUNCE_SECONDS):
        self._callback = callback
        self._wait = wait
        self._lock = threading.Lock()
        # Held from taking the pending document until the callback returns.
        self._deliver_lock = threading.RLock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Any = _NOTHING
        self._last_emitted: Optional[str] = None

    def __call__(self, document: Dict[str, Any]) -> None:
        with self._lock:
            self._pending = document
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._wait, self.flush)
            self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self) -> bool:
        return self._pending is not _NOTHING

    def flush(self) -> bool:
        """Deliver the pending document now. Returns False when nothing was sent."""
        with self._deliver_lock:
            with self._lock:
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None
                document, self._pending = self._pending, _NOTHING
            if document is _NOTHING:
                return False
            text = json.dumps(document, ensure_ascii=False)
            if text == self._last_emitted:
                return False
            self._last_emitted = text
            self._callback(text)
            return True

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = _NOTHING


def _parse(text: Optional[str]) -> Any:
    if text is None:
        raise ValueError("no input")
    return json.loads(text)


class EditorSession:
    """
    One editing session: a SchemaEditor seeded from optional schema text,
    plus the import/export boundary used by the presentation layer.
    """

    def __init__(
        self,
        seed: Optional[str] = None,
        on_change: Optional[Callable[[str], None]] = None,
        config: Optional[EditorConfig] = None,
        wait: float = DEBOUNCE_SECONDS,
    ):
        self.config = config or EditorConfig()
        self.editor = SchemaEditor(self._seed_document(seed))
        self.notifier: Optional[ChangeNotifier] = None
        if on_change is not None:
            self.notifier = ChangeNotifier(on_change, wait)
            self.editor.subscribe(self.notifier)

    @staticmethod
    def _seed_document(seed: Optional[str]) -> Optional[Dict[str, Any]]:
        if not seed:
            return None
        try:
            document = json.loads(seed)
        except json.JSONDecodeError as exc:
            logger.debug("unparsable seed ignored: %s", exc)
            return None
        if not isinstance(document, dict):
            logger.debug("seed is not a JSON object; using the default document")
            return None
        return document

    @property
    def document(self) -> Dict[str, Any]:
        return self.editor.document

    def import_json(self, text: Optional[str], title: Optional[str] = None) -> bool:
        """
        Replace the document with a schema inferred from a JSON sample.
        Returns False, leaving the document untouched, for invalid input.
        """
        try:
            sample = _parse(text)
        except ValueError as exc:
            logger.warning("ignored invalid JSON sample: %s", exc)
            return False
        if sample is None:
            logger.warning("ignored empty JSON sample")
            return False
        self.editor.replace_document(infer_schema(sample, title))
        return True

    def import_schema(self, text: Optional[str]) -> bool:
        """
        Replace the document with a literal schema (import dialog or the
        full-document text panel). Returns False for invalid input.
        """
        try:
            document = _parse(text)
        except ValueError as exc:
            logger.warning("ignored invalid JSON schema: %s", exc)
            return False
        if not isinstance(document, dict):
            logger.warning("ignored JSON schema that is not an object")
            return False
        self.editor.replace_document(document)
        return True

    def export(self, indent: Optional[int] = None) -> str:
        return self.editor.to_json(indent=indent)

    def flush(self) -> bool:
        if self.notifier is None:
            return False
        return self.notifier.flush()

    def close(self) -> None:
        """Deliver any pending change and stop the debounce timer."""
        if self.notifier is not None:
            self.notifier.flush()
            self.notifier.cancel()
