"""
测试共用的 fixture
"""

from datetime import date, datetime
from pathlib import Path

import pytest

from build_log.core.models import (
    AppUpdate,
    BuildFile,
    BuildProject,
    KnownIssue,
    TestResult,
)

ARTIFACT_0709 = "gpn600_001-AAL-AA-07009-01.20260130.062740"
ARTIFACT_0710 = "gpn600_001-AAL-AA-07010-01.20260201.101500"

IDENTIFIER_0709 = "AAL-AA-07009-01.20260130.062740"
IDENTIFIER_0710 = "AAL-AA-07010-01.20260201.101500"


@pytest.fixture
def complete_project() -> BuildProject:
    """所有必填字段都已填写的构建记录"""
    return BuildProject(
        build_number="AAL-AA-07009-01",
        build_date=date(2026, 1, 30),
        device="GPN600-001",
        build_type="userdebug",
        android_version="14",
        security_patch="2026-01-05",
        kernel_version="5.15.123",
        previous_build="AAL-AA-07008-01",
        files=[
            BuildFile(f"{ARTIFACT_0709}.zip", "1.5 GB", "ab" * 32),
        ],
        app_updates=[
            AppUpdate(
                app_name="Launcher",
                path="packages/apps/Launcher3",
                version="2.1.0",
                changes="New grid",
                description="Home screen",
                details=["Added 5x5 grid", "Fixed icon cache"],
            ),
        ],
        system_modifications="Disabled setup wizard\nEnabled adb by default",
        kernel_driver_changes="Updated touch driver",
        removed_components="Removed Chrome",
        known_issues=[
            KnownIssue("Bluetooth drops after sleep", "High", "Open", "Toggle Bluetooth"),
        ],
        test_results=[
            TestResult("Boot Test", "Pass", "Cold boot 25s"),
            TestResult("Basic Functionality", "Pass", ""),
            TestResult("OTA Update Test", "Fail", "Signature mismatch"),
        ],
        bootloader_version="1.2.3",
        compatible_ota_builds="AAL-AA-07008-01",
        internal_testing=True,
        customer_release=True,
        specific_customer="Acme Corp",
        customer_release_notes="First customer drop.\nIncludes the new launcher.",
        built_by="Alice",
        reviewed_by="Bob",
        approved_for_release_date=date(2026, 1, 31),
        last_updated=datetime(2026, 1, 30, 6, 27, 40),
    )


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """包含两个构建的产物和一个无关文件的工作区"""
    (tmp_path / f"{ARTIFACT_0709}.zip").write_bytes(b"zip-data")
    (tmp_path / f"{ARTIFACT_0709}.json").write_bytes(b"{}")
    (tmp_path / f"{ARTIFACT_0710}.zip").write_bytes(b"newer-zip-data")
    (tmp_path / "notes.txt").write_text("not an artifact")
    return tmp_path
