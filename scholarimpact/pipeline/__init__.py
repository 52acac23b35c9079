# pipeline - from a typed name to an impact report
from .orchestrator import ImpactPipeline
from .results import ImpactReport
