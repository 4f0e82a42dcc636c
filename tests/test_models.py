"""Tests for job models and derived artifact paths."""

from datetime import datetime
from pathlib import Path

import pytest
from pydantic import ValidationError

from fb_rescue.models.job import JobRequest, Operation, RecoveryJob


def make(db_path="/srv/data/APP.DB", **kwargs):
    request = JobRequest(
        operation=Operation.BACKUP_RESTORE,
        db_path=db_path,
        bin_dir="/opt/firebird/bin",
        password="secret",
    )
    return RecoveryJob.create(request, now=datetime(2024, 1, 1, 12, 0, 0), **kwargs)


def test_derived_paths():
    job = make()
    folder = Path("/srv/data")

    assert job.stamp == "20240101_120000"
    assert job.paths.old_db == folder / "APP_OLD_20240101_120000.DB"
    assert job.paths.new_db == folder / "APP_NEW_20240101_120000.DB"
    assert job.paths.archive == folder / "APP_20240101_120000.FBK"
    assert job.paths.temp_dir == folder / "TEMP"
    assert job.paths.log_backup == folder / "TEMP" / "LOG_BKP_20240101_120000.LOG"
    assert job.paths.log_restore == folder / "TEMP" / "LOG_RTR_20240101_120000.LOG"


def test_archive_extension_is_configurable():
    job = make("/srv/data/SHOP.fdb", archive_extension="GBK")

    assert job.paths.archive.name == "SHOP_20240101_120000.GBK"
    assert job.paths.old_db.name == "SHOP_OLD_20240101_120000.fdb"


def test_job_is_immutable():
    job = make()

    with pytest.raises(ValidationError):
        job.user = "OTHER"


def test_password_not_in_repr():
    job = make()

    assert "secret" not in repr(job)
    assert job.user == "SYSDBA"
