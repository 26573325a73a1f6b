"""CLI entry points for IPGuard.

Provides command-line tools for:
- Registering protected assets
- Creating and running monitoring jobs
- Evidence integrity checks and custody reports
"""

import click

from .evidence import evidence_group
from .job import asset_group, job_group


@click.group()
@click.version_option(version="0.1.0", prog_name="ipguard")
def main():
    """IPGuard - IP infringement monitoring.

    Command-line tools for monitoring jobs, auto-escalation
    and evidence chain of custody.
    """
    pass


main.add_command(asset_group, name="asset")
main.add_command(job_group, name="job")
main.add_command(evidence_group, name="evidence")


if __name__ == "__main__":
    main()
