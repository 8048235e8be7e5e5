"""
Markdown 生成器测试
"""

from build_log.core.generator import format_bullets, generate_markdown, result_emoji
from build_log.core.models import BuildProject, KnownIssue, TestResult


def test_title_and_footer(complete_project):
    markdown = generate_markdown(complete_project)

    assert markdown.startswith("# Android OS Image Build Log - AAL-AA-07009-01\n\n")
    assert markdown.endswith("---\n*Last updated: 2026-01-30 06:27:40*\n")


def test_generation_is_deterministic(complete_project):
    assert generate_markdown(complete_project) == generate_markdown(complete_project)


def test_build_information_table(complete_project):
    lines = generate_markdown(complete_project).split("\n")

    start = lines.index("## Build Information")
    assert lines[start + 2] == "| Property | Value |"
    assert lines[start + 3] == "|" + "-" * 10 + "|" + "-" * 7 + "|"
    assert lines[start + 4] == "| **Build Number** | `AAL-AA-07009-01` |"
    assert lines[start + 5] == "| **Build Date** | 2026-01-30 |"
    assert "| **Previous Build** | AAL-AA-07008-01 |" in lines


def test_files_table(complete_project):
    markdown = generate_markdown(complete_project)

    assert "| File | Size | SHA256 |" in markdown
    assert f"| `gpn600_001-AAL-AA-07009-01.20260130.062740.zip` | 1.5 GB | `{'ab' * 32}` |" in markdown


def test_files_section_always_present():
    assert "## Files" in generate_markdown(BuildProject())


def test_app_updates_and_details(complete_project):
    markdown = generate_markdown(complete_project)

    assert "| App | Path | Version | Changes | Description |" in markdown
    assert "| Launcher | `packages/apps/Launcher3` | 2.1.0 | New grid | Home screen |" in markdown
    assert "#### Launcher Details\n\n- Added 5x5 grid\n- Fixed icon cache\n" in markdown


def test_changelog_text_sections(complete_project):
    markdown = generate_markdown(complete_project)

    assert "### System Modifications\n\n- Disabled setup wizard\n- Enabled adb by default\n" in markdown
    assert "### Kernel/Driver Changes\n\n- Updated touch driver\n" in markdown
    assert "### Configuration Changes" not in markdown


def test_format_bullets():
    assert format_bullets("  first \n\n second\n   \n") == ["- first", "- second"]
    assert format_bullets("") == []


def test_known_issues_omitted_when_empty(complete_project):
    complete_project.known_issues = []
    assert "## Known Issues" not in generate_markdown(complete_project)


def test_known_issues_table(complete_project):
    complete_project.known_issues.append(KnownIssue("Camera lag", "Low", "Fixed", "-"))
    markdown = generate_markdown(complete_project)

    assert "| Issue | Severity | Status | Workaround |" in markdown
    assert "| Camera lag | Low | Fixed | - |" in markdown


def test_testing_status_rows(complete_project):
    complete_project.test_results.append(TestResult("Camera", "Skipped", "later"))
    complete_project.test_results.append(TestResult("Thermal", "Blocked", ""))
    markdown = generate_markdown(complete_project)

    assert "| Boot Test | ✅ Pass | Cold boot 25s |" in markdown
    assert "| OTA Update Test | ❌ Fail | Signature mismatch |" in markdown
    assert "| Camera | ⏭️ Skipped | later |" in markdown
    assert "| Thermal | ❓ Blocked |  |" in markdown


def test_result_emoji():
    assert result_emoji("Pending") == "⏳"
    assert result_emoji("unknown") == "❓"


def test_testing_status_omitted_without_tests(complete_project):
    complete_project.test_results = []
    assert "## Testing Status" not in generate_markdown(complete_project)


def test_internal_testing_always_checked(complete_project):
    complete_project.internal_testing = False
    complete_project.customer_release = False
    markdown = generate_markdown(complete_project)

    assert "- [x] Internal Testing" in markdown
    assert "- [ ] Customer Release" in markdown


def test_release_sections(complete_project):
    markdown = generate_markdown(complete_project)

    assert "- **Bootloader Version**: 1.2.3" in markdown
    assert "- **Compatible OTA Builds**: AAL-AA-07008-01" in markdown
    assert "- [x] Customer Release" in markdown
    assert "- **Specific Customer**: Acme Corp" in markdown
    assert "## Customer Release Notes\n\nFirst customer drop.\nIncludes the new launcher.\n" in markdown
    assert "- **Built by**: Alice" in markdown
    assert "- **Reviewed by**: Bob" in markdown
    assert "- **Approved for release**: 2026-01-31" in markdown


def test_optional_release_lines_omitted():
    markdown = generate_markdown(BuildProject())

    assert "Specific Customer" not in markdown
    assert "## Customer Release Notes" not in markdown
    assert "Approved for release" not in markdown


def test_section_order(complete_project):
    markdown = generate_markdown(complete_project)
    headings = [line for line in markdown.split("\n") if line.startswith("## ")]

    assert headings == [
        "## Build Information",
        "## Files",
        "## Changelog",
        "## Known Issues",
        "## Testing Status",
        "## Dependencies",
        "## Recommended For",
        "## Customer Release Notes",
        "## Build Engineer",
    ]
