"""
Shared fixtures and configuration for code-saver tests
"""

import os
import sys
from pathlib import Path
import pytest

# Add src directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

from codesaver.destinations import DestinationRegistry
from codesaver.history import DirectoryHistory
from codesaver.models import CodeUnit

SRC_DIR = Path(__file__).resolve().parent.parent / "src"

# Fixed capture time so generated names are stable across a test
CAPTURED_AT = 1700000000.0


@pytest.fixture(autouse=True)
def code_saver_home(tmp_path, monkeypatch):
    """Point all config and state at a throwaway directory"""
    home = tmp_path / "home"
    monkeypatch.setenv("CODE_SAVER_HOME", str(home))
    return home


@pytest.fixture
def registry(tmp_path):
    return DestinationRegistry(tmp_path / "destinations.json5")


@pytest.fixture
def history(tmp_path):
    return DirectoryHistory(tmp_path / "history.json5")


@pytest.fixture
def make_unit():
    """Build a CodeUnit with a fixed capture time"""
    def _make(content, language="txt", **kwargs):
        kwargs.setdefault("captured_at", CAPTURED_AT)
        return CodeUnit(content=content, language=language, **kwargs)
    return _make


@pytest.fixture
def host_env():
    """Environment for a host subprocess that can import codesaver from src"""
    env = dict(os.environ)
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = str(SRC_DIR) + (os.pathsep + existing if existing else "")
    return env


@pytest.fixture
def chat_html():
    """A transcript the way chat UIs render one"""
    return """<!DOCTYPE html>
<html><body><main>
<div class="message">
  <p>utils.py</p>
  <pre><code class="language-python">def slugify(text):
    return text.lower().replace(" ", "-")
</code></pre>
</div>
<div class="message">
  <p>And the entry point:</p>
  <pre><code class="language-rust">fn main() {
    println!("hi");
}
</code></pre>
</div>
<div class="message">
  <p>Some output:</p>
  <pre><code>42
</code></pre>
</div>
</main></body></html>
"""


@pytest.fixture
def chat_markdown():
    return """# Session

```python
def test_thing():
    assert True
```

Save this to `src/config.rs`:

```rust
pub struct Config {
    pub verbose: bool,
}
```

### README.md

```markdown
# demo
```
"""
