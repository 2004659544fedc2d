# jobs.py
"""
Daily maintenance jobs, meant to be run from cron or an Azure WebJob.

     python jobs.py expire-leases
     python jobs.py apply-escalations
     python jobs.py all
"""
import argparse
import logging
import sys

import config
from database import get_session_context
from services.escalation_service import EscalationService
from services.lease_service import LeaseService

logger = logging.getLogger("jobs")


def expire_leases() -> int:
     with get_session_context() as db:
          expired = LeaseService.expire_ended_leases(db)
          logger.info("Expired %d lease(s): %s", len(expired), [lease.id for lease in expired])
          return len(expired)


def apply_escalations() -> int:
     with get_session_context() as db:
          applied = EscalationService.apply_due_escalations(db)
          logger.info("Applied %d escalation(s): %s", len(applied), [e.id for e in applied])
          return len(applied)


JOBS = {
     "expire-leases": [expire_leases],
     "apply-escalations": [apply_escalations],
     # Escalations first: applying one requires the lease to still be ACTIVE
     "all": [apply_escalations, expire_leases],
}


def main(argv=None) -> int:
     parser = argparse.ArgumentParser(description="Run Leasehold maintenance jobs")
     parser.add_argument("job", choices=sorted(JOBS))
     args = parser.parse_args(argv)

     logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

     for job in JOBS[args.job]:
          try:
               job()
          except Exception:
               logger.exception("Job %s failed", job.__name__)
               return 1
     return 0


if __name__ == "__main__":
     sys.exit(main())
