from .interpolation import Interpolation, Linear, SIMP, RAMP, MathInterpolation, get_interpolation
from .filter import Filter, SensitivityFilter, DensityFilter, filter_setup
from .assembly import AssembleGeneral, AssembleStiffness, AssembleMass
from .objective import Compliance, compliance, element_energy
from .io import PrintIteration, FigCallback, PlotDensity, write_design, read_design

__all__ = ["Interpolation", "Linear", "SIMP", "RAMP", "MathInterpolation", "get_interpolation",
           "Filter", "SensitivityFilter", "DensityFilter", "filter_setup",
           "AssembleGeneral", "AssembleStiffness", "AssembleMass",
           "Compliance", "compliance", "element_energy",
           "PrintIteration", "FigCallback", "PlotDensity", "write_design", "read_design",
           ]
