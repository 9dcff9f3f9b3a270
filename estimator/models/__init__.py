# estimator/models/__init__.py
from .client import Client
from .project import Project, ProjectStatus, BOQJob
from .material import Material
from .pricing import SupplierPrice
from .job import Job, JobMaterial

__all__ = [
    "Client",
    "Project",
    "ProjectStatus",
    "BOQJob",
    "Material",
    "SupplierPrice",
    "Job",
    "JobMaterial",
]
