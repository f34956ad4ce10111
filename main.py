"""
main.py: Training run entry point.

Generates the synthetic booking dataset, trains and evaluates the table
recommendation model, saves the fitted pipeline and reports metrics:

    python main.py

Settings come from ``TABLEREC_*`` environment variables (see
table_recommender/utils/config.py). The process exits with status 0 even
when a stage fails; the failure is printed and written to the error log.
"""

from __future__ import annotations

from table_recommender.services.workflow_service import TrainingWorkflow, format_summary
from table_recommender.utils.config import get_settings


def main() -> int:
    """Run the training workflow and print a console summary."""
    try:
        settings = get_settings()
    except ValueError as exc:
        print(f"  An error occurred during configuration: {exc}")
        return 0

    print("=" * 60)
    print(f"  {settings.app_name} {settings.app_version}")
    print("=" * 60)
    print(f"  Synthetic rows : {settings.synthetic_row_count}")
    print(f"  Artifact       : {settings.model_artifact_path}")
    print("=" * 60)

    result = TrainingWorkflow(settings=settings).run()

    if result.report is not None:
        for line in format_summary(result.report):
            print(f"  {line}")
        print("=" * 60)

    failure = result.failed_stage
    if failure is not None:
        print(f"  An error occurred during {failure.stage}: {failure.message}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
