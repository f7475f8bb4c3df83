"""
CLI for chbp - validate and compile ClickHouse best-practice rules.

Usage:
    chbp validate                 # Structural checks on every rule file
    chbp validate-sql             # Run SQL examples through sandboxed clickhouse-local
    chbp check-links              # Internal (relative and anchor) links
    chbp check-external-links     # HTTP(S) links across the skill
    chbp build [--upgrade-version]
"""

import sys
from pathlib import Path

import click

from ... import __version__
from ...config import get_settings
from ...domain.exceptions import BuildError, MetadataError, SectionsLoadError
from ...infrastructure import ClickHouseLocalEngine, UrllibProber
from ...services import (
    BuildService,
    ExternalLinkChecker,
    InternalLinkChecker,
    MetadataStore,
    SQLValidator,
    StructuralValidator,
    collect_external_links,
    load_rule_set,
    sort_results,
)
from ...ui import (
    CIProgressReporter,
    RichProgressReporter,
    default_reporter,
    report_external_links,
    report_internal_links,
    report_sql,
    report_structure,
)

DIRECTORY = click.Path(exists=True, file_okay=False, path_type=Path)


def _reporter(ctx: click.Context):
    return ctx.obj["reporter"]


@click.group()
@click.version_option(version=__version__, prog_name="chbp")
@click.option(
    "--ci/--rich",
    "ci_mode",
    default=None,
    help="Force plain CI output or Rich output. Defaults to Rich on a terminal.",
)
@click.pass_context
def main(ctx: click.Context, ci_mode: bool | None):
    """chbp - ClickHouse best-practices rule toolkit."""
    ctx.ensure_object(dict)
    if ci_mode is None:
        ctx.obj["reporter"] = default_reporter()
    else:
        ctx.obj["reporter"] = CIProgressReporter() if ci_mode else RichProgressReporter()


@main.command()
@click.option("--rules-dir", type=DIRECTORY, default=None, help="Directory of rule files.")
@click.pass_context
def validate(ctx: click.Context, rules_dir: Path | None):
    """Check every rule file for required fields and examples."""
    reporter = _reporter(ctx)
    rules_dir = rules_dir or get_settings().RULES_DIR

    reporter.info("Validating rule files...")
    reporter.info(f"Rules directory: {rules_dir}")

    rules, errors = load_rule_set(rules_dir)
    violations = StructuralValidator.parse_error_violations(errors)
    violations += StructuralValidator().validate(rules)

    if not report_structure(reporter, violations, len(rules) + len(errors)):
        sys.exit(1)


@main.command("validate-sql")
@click.option("--rules-dir", type=DIRECTORY, default=None, help="Directory of rule files.")
@click.option(
    "--build-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Build directory; the clickhouse binary is kept in <build-dir>/bin.",
)
@click.pass_context
def validate_sql(ctx: click.Context, rules_dir: Path | None, build_dir: Path | None):
    """Validate SQL examples with a sandboxed clickhouse-local."""
    reporter = _reporter(ctx)
    settings = get_settings()
    rules_dir = rules_dir or settings.RULES_DIR
    bin_dir = build_dir / "bin" if build_dir else settings.clickhouse_bin_dir

    reporter.info("Validating SQL syntax in rule files...")
    reporter.info(f"Rules directory: {rules_dir}")

    rules, errors = load_rule_set(rules_dir)
    for error in errors:
        reporter.error(f"Error processing {error}")

    engine = ClickHouseLocalEngine(
        bin_dir=bin_dir,
        version=settings.CLICKHOUSE_VERSION,
        release_url=settings.CLICKHOUSE_RELEASE_URL,
        max_execution_time=settings.SQL_MAX_EXECUTION_TIME,
        max_memory_usage=settings.SQL_MAX_MEMORY_USAGE,
        max_rows_to_read=settings.SQL_MAX_ROWS_TO_READ,
        sandbox_path=settings.SQL_SANDBOX_PATH,
        progress=reporter,
    )
    report = SQLValidator(engine, progress=reporter).validate(rules)

    if not report_sql(reporter, report):
        sys.exit(1)


@main.command("check-links")
@click.option("--rules-dir", type=DIRECTORY, default=None, help="Directory of rule files.")
@click.pass_context
def check_links(ctx: click.Context, rules_dir: Path | None):
    """Check relative and anchor links between rule files."""
    reporter = _reporter(ctx)
    rules_dir = rules_dir or get_settings().RULES_DIR

    reporter.info("Checking internal links in rule files...")
    reporter.info(f"Rules directory: {rules_dir}")

    try:
        report = InternalLinkChecker.check_directory(rules_dir)
    except (OSError, UnicodeDecodeError) as e:
        click.echo(f"Error reading rule files: {e}", err=True)
        sys.exit(1)

    if not report_internal_links(reporter, report):
        sys.exit(1)


@main.command("check-external-links")
@click.option("--skill-dir", type=DIRECTORY, default=None, help="Skill directory to scan.")
@click.pass_context
def check_external_links(ctx: click.Context, skill_dir: Path | None):
    """Check that every HTTP(S) link in the skill returns 2xx."""
    reporter = _reporter(ctx)
    settings = get_settings()
    skill_dir = skill_dir or settings.SKILL_DIR

    reporter.info("Checking external links...")
    reporter.info(f"Skill directory: {skill_dir}")

    try:
        links = collect_external_links(skill_dir, settings.SKILL_NAME, progress=reporter)
    except (OSError, UnicodeDecodeError) as e:
        click.echo(f"Error reading skill files: {e}", err=True)
        sys.exit(1)

    if not links:
        reporter.info("No external links found")
        return
    reporter.info(f"Found {len(links)} unique external links")

    checker = ExternalLinkChecker(
        prober=UrllibProber(),
        timeout=settings.LINK_TIMEOUT_SECONDS,
        max_retries=settings.LINK_MAX_RETRIES,
        concurrency=settings.LINK_CONCURRENCY,
        retry_delays=settings.LINK_RETRY_DELAYS,
        progress=reporter,
    )
    results = sort_results(checker.run(links))

    if not report_external_links(reporter, results):
        sys.exit(1)


@main.command()
@click.option("--rules-dir", type=DIRECTORY, default=None, help="Directory of rule files.")
@click.option("--skill-dir", type=DIRECTORY, default=None, help="Skill directory holding metadata.json.")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file. Defaults to <skill-dir>/AGENTS.md.",
)
@click.option("--upgrade-version", is_flag=True, help="Bump the patch version in metadata.json.")
@click.pass_context
def build(
    ctx: click.Context,
    rules_dir: Path | None,
    skill_dir: Path | None,
    output: Path | None,
    upgrade_version: bool,
):
    """Compile all rules into a single numbered document."""
    reporter = _reporter(ctx)
    settings = get_settings()
    if rules_dir is None:
        rules_dir = skill_dir / "rules" if skill_dir else settings.RULES_DIR
    skill_dir = skill_dir or settings.SKILL_DIR

    reporter.banner("chbp build", __version__)

    service = BuildService(
        rules_dir=rules_dir,
        sections_path=rules_dir / settings.SECTIONS_FILE,
        metadata_store=MetadataStore(skill_dir / settings.METADATA_FILE),
        output_path=output or skill_dir / settings.OUTPUT_FILE,
        progress=reporter,
    )

    try:
        document = service.build(upgrade=upgrade_version)
    except (BuildError, SectionsLoadError, MetadataError, OSError) as e:
        click.echo(f"Build failed: {e}", err=True)
        sys.exit(1)

    reporter.success(
        f"✓ Built version {document.version}: "
        f"{len(document.sections)} sections, {document.rule_count} rules"
    )


if __name__ == "__main__":
    main()
