__version__ = "1.0.0"

# Imports from common
from .common.mesh import ElementMesh, RectangularMesh
from .common.elements import quad_stiffness, quad_conduction, quad_mass
from .common.problem import Problem
from .common.optimizers import Optimizer, OC, Status, IterationState, OptimizationResult

# Import solvers
from . import solvers
from .solvers import solve_equilibrium

# Import modules
from .modules.assembly import AssembleGeneral, AssembleStiffness, AssembleMass
from .modules.filter import Filter, SensitivityFilter, DensityFilter, filter_setup
from .modules.interpolation import Interpolation, Linear, SIMP, RAMP, MathInterpolation, get_interpolation
from .modules.io import PrintIteration, FigCallback, PlotDensity, write_design, read_design
from .modules.objective import Compliance, compliance, element_energy

# Further helper routines
from .routines import compliance_response, finite_difference, minimize_oc

__all__ = [
    "compliance_response",
    "finite_difference",
    "minimize_oc",
    # Common
    "ElementMesh",
    "RectangularMesh",
    "quad_stiffness",
    "quad_conduction",
    "quad_mass",
    "Problem",
    "Optimizer",
    "OC",
    "Status",
    "IterationState",
    "OptimizationResult",
    "solvers",
    "solve_equilibrium",
    # Modules
    "AssembleGeneral",
    "AssembleStiffness",
    "AssembleMass",
    "Filter",
    "SensitivityFilter",
    "DensityFilter",
    "filter_setup",
    "Interpolation",
    "Linear",
    "SIMP",
    "RAMP",
    "MathInterpolation",
    "get_interpolation",
    "PrintIteration",
    "FigCallback",
    "PlotDensity",
    "write_design",
    "read_design",
    "Compliance",
    "compliance",
    "element_energy",
]
