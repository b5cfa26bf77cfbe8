from personaliz.planner.client import PlannerClient
from personaliz.planner.heuristic import plan_heuristically
from personaliz.planner.models import PlannerResult, Worker

__all__ = ["PlannerClient", "PlannerResult", "Worker", "plan_heuristically"]
