"""集成测试共享 fixture"""

import os
from collections.abc import Generator
from pathlib import Path

import pytest

_ENV_KEYS = ("WORKSPIN_DB_PATH", "LOGFIRE_SEND_TO_LOGFIRE")


@pytest.fixture
def integration_env(seeded_db) -> Generator[tuple[Path, object], None, None]:
    """指向预置协作空间数据库的环境变量

    测试自行创建 app（TestClient 运行完整 lifespan），便于模拟重启。
    """
    db_path, workspace = seeded_db
    os.environ["WORKSPIN_DB_PATH"] = str(db_path)
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    yield db_path, workspace

    for key in _ENV_KEYS:
        os.environ.pop(key, None)
