import threading

import pytest

from commitcraft.config import PipelineSettings, Preferences
from commitcraft.providers.credentials import ProviderCredentials

BUTTON_RENAME_DIFF = """diff --git a/src/components/Button.tsx b/src/components/Button.tsx
index 3b18e51..a1f4c2d 100644
--- a/src/components/Button.tsx
+++ b/src/components/Button.tsx
@@ -1,7 +1,7 @@
 interface ButtonProps {
-  text: string;
+  label: string;
   onClick: () => void;
 }

"""

AUTH_SECRET_DIFF = """diff --git a/src/auth/config.py b/src/auth/config.py
index 1111111..2222222 100644
--- a/src/auth/config.py
+++ b/src/auth/config.py
@@ -1,2 +1,3 @@
 import os
+API_KEY = "sk-live-0123456789abcdef"
 TIMEOUT = 30
"""

MULTI_FILE_DIFF = """diff --git a/src/api/routes.js b/src/api/routes.js
index 1111111..2222222 100644
--- a/src/api/routes.js
+++ b/src/api/routes.js
@@ -1,3 +1,5 @@
 const express = require('express');
+console.log('loading routes');
+debugger;
 const router = express.Router();
 module.exports = router;
diff --git a/docs/old.md b/docs/old.md
deleted file mode 100644
index 3333333..0000000
--- a/docs/old.md
+++ /dev/null
@@ -1,2 +0,0 @@
-# Old docs
-Removed.
diff --git a/src/new_module.py b/src/new_module.py
new file mode 100644
index 0000000..4444444
--- /dev/null
+++ b/src/new_module.py
@@ -0,0 +1,2 @@
+def handler():
+    return 42
"""


class FakeBackend:
    """Streaming backend that yields scripted fragments without network calls."""

    def __init__(self, fragments=("feat(ui): ", "rename Button text prop ", "to label"), error_at=None):
        self.fragments = list(fragments)
        self.error_at = error_at
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def stream(self, prompt, config, token):
        with self._lock:
            self.calls.append((prompt, config.id))
        for index, fragment in enumerate(self.fragments):
            if self.error_at is not None and index == self.error_at:
                raise RuntimeError("upstream connection reset")
            if token.is_cancelled:
                return
            yield fragment


class BlockingBackend:
    """First call yields one fragment, then waits until its token is cancelled.

    Later calls stream normally. `started` is set once the first call has
    produced its first fragment.
    """

    def __init__(self, fragments=("fix(api): ", "handle empty payloads")):
        self.fragments = list(fragments)
        self.started = threading.Event()
        self.call_count = 0
        self._lock = threading.Lock()

    def stream(self, prompt, config, token):
        with self._lock:
            self.call_count += 1
            first_call = self.call_count == 1
        if first_call:
            yield "feat: stale "
            self.started.set()
            token.wait(timeout=5)
            yield "fragment after supersede"
            return
        for fragment in self.fragments:
            yield fragment


@pytest.fixture
def button_diff():
    return BUTTON_RENAME_DIFF


@pytest.fixture
def secret_diff():
    return AUTH_SECRET_DIFF


@pytest.fixture
def multi_file_diff():
    return MULTI_FILE_DIFF


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def empty_credentials():
    return ProviderCredentials()


@pytest.fixture
def settings(tmp_path):
    return PipelineSettings(
        history_path=str(tmp_path / "history.json"),
        rate_limit_max_wait_seconds=0.5,
        preferences=Preferences(),
    )
