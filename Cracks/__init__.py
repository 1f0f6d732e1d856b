"""
Cracks
======

Staggered phase field fracture driver: time stepping with step-size control
on solver failure and adaptive mesh refinement with transfer of solutions and
quadrature point history, distributed over MPI.

The dolfinx mesh backend lives in ``Cracks.Mesh.dolfinx_mesh`` and is only
imported on demand.
"""
from .utils.errors import NonConvergenceError, MeshFileNotFoundError, TransferOrderError
from .utils.parameters import set_parameters, load_parameters

from .Multiphysics.field_solver import FieldState, FieldSolver, PhaseFieldSolver
from .Multiphysics.multiphysics import Multiphysics
from .Multiphysics.phase_field_fracture import PhaseFieldFracture

from .Mesh.mesh_manager import MeshManager
from .Mesh.point_history import PointHistoryStore
from .Mesh.transfer import StateTransferManager, RefinementTransaction
from .Mesh.refinement import MeshRefiner, refinement_threshold

from .Solve.time_stepping import SimulationState, TimestepAdapter
from .Solve.status import Converged, Diverged
from .Solve.staggered_solve import StaggeredSolver
from .Solve.context import SimulationContext
from .Solve.Solve import SimulationController

from .Export.export_result import ExportResults

__version__ = "0.1.0"
