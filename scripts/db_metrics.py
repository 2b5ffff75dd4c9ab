"""Print a JSON snapshot of connection pool counters and content table sizes."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Dict

from sqlalchemy import func, select, text

from luxlibris.db.models import AssessmentModel, PersistenceAuditEventModel, StudentAssessmentResultModel
from luxlibris.db.monitoring import get_pool_snapshot
from luxlibris.db.session import get_engine, session_scope

LOGGER = logging.getLogger("luxlibris.db_metrics")


def table_counts() -> Dict[str, int]:
    counts: Dict[str, int] = {}
    with session_scope(commit=False) as session:
        for label, column in (
            ("assessments", AssessmentModel.id),
            ("student_results", StudentAssessmentResultModel.id),
            ("audit_events", PersistenceAuditEventModel.id),
        ):
            counts[label] = int(session.execute(select(func.count(column))).scalar_one())
    return counts


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    try:
        engine = get_engine()
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "pool": get_pool_snapshot(engine),
            "tables": table_counts(),
        }
        print(json.dumps(payload))
        return 0
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Failed to collect database metrics: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
