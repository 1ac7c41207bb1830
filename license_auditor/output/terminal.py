"""Terminal output formatter using Rich."""
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from license_auditor.models.result import AuditResult, ClassificationStatus, DetectedLicense

STATUS_STYLES = {
    ClassificationStatus.WHITELIST: "green",
    ClassificationStatus.BLACKLIST: "red",
    ClassificationStatus.UNKNOWN: "yellow",
}


class TerminalFormatter:
    """Format audit results for terminal display using Rich.

    Prints an executive summary, one table per compliance status, and the
    not-found, needs-verification and error lists.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        verbose: bool = False,
        strict: bool = False,
        bail: Optional[int] = None,
    ) -> None:
        """Initialize the formatter with a Rich console.

        Args:
            console: Optional Rich Console instance. If not provided,
                a new Console will be created.
            verbose: Also list whitelisted packages and license sources.
            strict: Treat resolution warnings and unknown, not-found and
                unverified packages as failures.
            bail: Number of blacklisted packages tolerated.
        """
        self._console = console if console is not None else Console()
        self._verbose = verbose
        self._strict = strict
        self._bail = bail

    def format_audit_result(self, result: AuditResult) -> None:
        """Format and display an audit result.

        Args:
            result: The audit result to display.
        """
        if result.total_packages == 0:
            self._console.print("[yellow]No packages found[/yellow]")
            self._print_warning(result)
            return

        self._print_executive_summary(result)

        for status in (ClassificationStatus.BLACKLIST, ClassificationStatus.UNKNOWN):
            self._print_status_table(status, result.grouped_by_status[status])
        if self._verbose:
            self._print_status_table(
                ClassificationStatus.WHITELIST,
                result.grouped_by_status[ClassificationStatus.WHITELIST],
            )

        self._print_not_found(result)
        self._print_needs_verification(result)
        self._print_errors(result)
        self._print_overrides(result)
        self._print_warning(result)

    def _print_executive_summary(self, result: AuditResult) -> None:
        """Print executive summary panel.

        Args:
            result: The audit result to summarize.
        """
        grouped = result.grouped_by_status
        if result.has_issues(strict=self._strict, bail=self._bail):
            status, status_color = "ISSUES FOUND", "red"
        else:
            status, status_color = "PASS", "green"

        summary_lines = [
            f"Total Packages: {result.total_packages}",
            f"Whitelisted: {len(grouped[ClassificationStatus.WHITELIST])}",
            f"Blacklisted: {len(grouped[ClassificationStatus.BLACKLIST])}",
            f"Unknown: {len(grouped[ClassificationStatus.UNKNOWN])}",
            f"License Not Found: {len(result.not_found)}",
            f"Needs Verification: {len(result.needs_user_verification)}",
        ]
        if result.error_results:
            summary_lines.append(f"Errors: {len(result.error_results)}")
        summary_lines.extend(["", f"Status: [{status_color}]{status}[/{status_color}]"])

        panel = Panel(
            "\n".join(summary_lines),
            title="[bold]LICENSE AUDIT[/bold]",
            border_style=status_color,
        )
        self._console.print(panel)
        self._console.print("")

    def _print_status_table(
        self, status: ClassificationStatus, packages: list[DetectedLicense]
    ) -> None:
        if not packages:
            return

        style = STATUS_STYLES[status]
        table = Table(title=f"[{style}]{status.value.capitalize()} ({len(packages)})[/{style}]")
        table.add_column("Package", style="cyan", no_wrap=True)
        table.add_column("Licenses", style=style)
        if self._verbose:
            table.add_column("Source")
            table.add_column("Path")

        for pkg in sorted(packages, key=lambda p: p.package_name.lower()):
            licenses = pkg.license_expression or ", ".join(
                lic.license_id for lic in pkg.licenses
            )
            row = [escape(pkg.package_name), escape(licenses)]
            if self._verbose:
                row.append(", ".join(sorted({lic.source for lic in pkg.licenses})))
                row.append(escape(pkg.package_path))
            table.add_row(*row)

        self._console.print(table)

    def _print_not_found(self, result: AuditResult) -> None:
        if not result.not_found:
            return
        self._console.print(
            f"\n[bold yellow]License Not Found ({len(result.not_found)})[/bold yellow]"
        )
        for entry in result.not_found.values():
            line = f"  [yellow]?[/yellow] {escape(entry.package_name)}"
            if self._verbose:
                line += f": {escape(entry.error_message)}"
            self._console.print(line)

    def _print_needs_verification(self, result: AuditResult) -> None:
        if not result.needs_user_verification:
            return
        self._console.print(
            "\n[bold yellow]Needs Verification "
            f"({len(result.needs_user_verification)})[/bold yellow]"
        )
        for entry in result.needs_user_verification.values():
            self._console.print(
                f"  [yellow]![/yellow] {escape(entry.package_name)}: "
                f"{escape(entry.verification_message)}"
            )

    def _print_errors(self, result: AuditResult) -> None:
        if not result.error_results:
            return
        self._console.print(f"\n[bold red]Errors ({len(result.error_results)})[/bold red]")
        for entry in result.error_results.values():
            self._console.print(
                f"  [red]x[/red] {escape(entry.package_name)}: {escape(entry.error_message)}"
            )

    def _print_overrides(self, result: AuditResult) -> None:
        overrides = result.overrides
        if overrides.skipped_count:
            self._console.print(
                f"\n[yellow]Skipped audit for {overrides.skipped_count} "
                "package(s) listed in the config overrides.[/yellow]"
            )
        if overrides.warn_overrides:
            self._console.print(
                "[yellow]Packages skipped with a warning: "
                f"{escape(', '.join(overrides.warn_overrides))}[/yellow]"
            )
        if overrides.not_found_overrides:
            self._console.print(
                "[yellow]Overrides not matching any package: "
                f"{escape(', '.join(overrides.not_found_overrides))}[/yellow]"
            )

    def _print_warning(self, result: AuditResult) -> None:
        if not result.warning:
            return
        self._console.print(f"\n[bold yellow]Warning:[/bold yellow] {escape(result.warning)}")
        if self._strict:
            self._console.print(
                "[red]Strict mode enabled: dependency resolution warnings "
                "are treated as failures.[/red]"
            )
