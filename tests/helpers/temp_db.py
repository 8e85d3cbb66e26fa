from __future__ import annotations

import shutil
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path


@dataclass
class TempDbSandbox:
    """Throwaway sqlite location for one test; the app creates the schema on first use."""

    prefix: str = "texlink_tests"
    db_name: str = "texlink_test.db"

    def __post_init__(self) -> None:
        folder = Path(tempfile.mkdtemp(prefix=f"{self.prefix}_{uuid.uuid4().hex[:8]}_"))
        self.temp_dir = str(folder)
        self.db_path = str(folder / self.db_name)

    def make_config(self, base_config, **overrides):
        attrs = {
            "DATABASE_DIR": self.temp_dir,
            "DB_PATH": self.db_path,
        }
        attrs.update(overrides)
        return type("TempConfig", (base_config,), attrs)

    def cleanup(self) -> None:
        shutil.rmtree(self.temp_dir, ignore_errors=True)
