from pathlib import Path

import pytest

from lovmirror.config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_REQUEST_TIMEOUT,
    LOV_INFO_URL,
    LOV_LIST_URL,
    MirrorConfig,
)


def test_from_env_defaults():
    cfg = MirrorConfig.from_env({})
    assert cfg.out_root == Path("public/lov").resolve()
    assert cfg.concurrency == DEFAULT_CONCURRENCY
    assert cfg.list_url == LOV_LIST_URL
    assert cfg.info_url == LOV_INFO_URL
    assert cfg.request_timeout == DEFAULT_REQUEST_TIMEOUT
    assert cfg.retry_total == 0


def test_from_env_reads_variables(tmp_path):
    cfg = MirrorConfig.from_env(
        {
            "OUT_DIR": str(tmp_path / "out"),
            "CONCURRENCY": "4",
            "LOV_LIST_URL": "https://mirror.test/list",
            "LOV_REQUEST_TIMEOUT": "12.5",
            "LOV_TASK_DEADLINE": "0",
            "LOV_USER_AGENT": "ua/2",
        }
    )
    assert cfg.out_root == (tmp_path / "out").resolve()
    assert cfg.concurrency == 4
    assert cfg.list_url == "https://mirror.test/list"
    assert cfg.request_timeout == 12.5
    assert cfg.task_deadline == 0
    assert cfg.user_agent == "ua/2"


def test_from_env_rejects_garbage():
    with pytest.raises(ValueError, match="CONCURRENCY"):
        MirrorConfig.from_env({"CONCURRENCY": "many"})


def test_concurrency_is_at_least_one(tmp_path):
    assert MirrorConfig(out_root=tmp_path, concurrency=0).concurrency == 1


def test_with_overrides_ignores_none(tmp_path):
    cfg = MirrorConfig(out_root=tmp_path, concurrency=3)
    out = cfg.with_overrides(concurrency=None, out_root=str(tmp_path / "x"), request_timeout=2)
    assert out.concurrency == 3
    assert out.out_root == (tmp_path / "x").resolve()
    assert out.request_timeout == 2
    assert cfg.out_root == tmp_path.resolve()
