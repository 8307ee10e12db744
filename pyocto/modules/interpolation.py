"""Material interpolation laws mapping densities to Young's moduli"""
from abc import ABC, abstractmethod

import numpy as np


class Interpolation(ABC):
    r"""Abstract base class for material interpolation laws

    An interpolation law maps the densities :math:`\mathbf{x}` to element Young's moduli
    :math:`E(\mathbf{x})` with :math:`E(0) = E_{min}` and :math:`E(1) = E_0`, and provides the derivative
    :math:`\partial E / \partial x`. Any monotonic and differentiable law can be used.

    Calling the object returns ``(E, dE)``.
    """
    name = None

    def __call__(self, x, E0: float, Emin: float, param=None):
        """Evaluate the interpolation

        Args:
            x: Densities
            E0: Young's modulus of the base material
            Emin: Minimum Young's modulus
            param (optional): Law-specific parameter, overriding the parameter the object is initialized with

        Returns:
            E: Young's modulus of each element
            dE: Derivative of the Young's modulus with respect to the density
        """
        x = np.asarray(x, dtype=float)
        return self.modulus(x, E0, Emin, param), self.modulus_derivative(x, E0, Emin, param)

    @abstractmethod
    def modulus(self, x: np.ndarray, E0: float, Emin: float, param=None) -> np.ndarray:
        raise NotImplementedError()

    @abstractmethod
    def modulus_derivative(self, x: np.ndarray, E0: float, Emin: float, param=None) -> np.ndarray:
        raise NotImplementedError()

    def __repr__(self):
        return f"{type(self).__name__}()"


class Linear(Interpolation):
    r"""Linear interpolation :math:`E = E_{min} + x (E_0 - E_{min})`"""
    name = "linear"

    def modulus(self, x, E0, Emin, param=None):
        return Emin + x * (E0 - Emin)

    def modulus_derivative(self, x, E0, Emin, param=None):
        return (E0 - Emin) * np.ones_like(x)


class SIMP(Interpolation):
    r"""Solid Isotropic Material with Penalization :math:`E = E_{min} + x^p (E_0 - E_{min})`

    Args:
        penal (float, optional): Penalization power :math:`p > 0`. Defaults to 3.0.

    References:
      - Bendsøe, M. P. (1989). *Optimal shape design as a material distribution problem*.
        Structural Optimization, 1(4), 193-202.
    """
    name = "simp"

    def __init__(self, penal: float = 3.0):
        if penal <= 0:
            raise ValueError(f"Penalization power must be positive, got {penal}")
        self.penal = penal

    def modulus(self, x, E0, Emin, param=None):
        p = self.penal if param is None else param
        return Emin + x ** p * (E0 - Emin)

    def modulus_derivative(self, x, E0, Emin, param=None):
        p = self.penal if param is None else param
        return p * x ** (p - 1) * (E0 - Emin)

    def __repr__(self):
        return f"SIMP(penal={self.penal})"


class RAMP(Interpolation):
    r"""Rational Approximation of Material Properties :math:`E = E_{min} + \frac{x}{1 + q(1-x)} (E_0 - E_{min})`

    Args:
        q (float, optional): Penalization parameter :math:`q \geq 0`. Defaults to 8.0.

    References:
      - Stolpe, M., & Svanberg, K. (2001). *An alternative interpolation scheme for minimum compliance topology
        optimization*. Structural and Multidisciplinary Optimization, 22(2), 116-124.
    """
    name = "ramp"

    def __init__(self, q: float = 8.0):
        if q < 0:
            raise ValueError(f"RAMP parameter must be non-negative, got {q}")
        self.q = q

    def modulus(self, x, E0, Emin, param=None):
        q = self.q if param is None else param
        return Emin + x / (1 + q * (1 - x)) * (E0 - Emin)

    def modulus_derivative(self, x, E0, Emin, param=None):
        q = self.q if param is None else param
        return (1 + q) / (1 + q * (1 - x)) ** 2 * (E0 - Emin)

    def __repr__(self):
        return f"RAMP(q={self.q})"


class MathInterpolation(Interpolation):
    """Interpolation law given as a symbolic expression

    The expression is written in terms of the variables ``x`` (density), ``E0``, ``Emin`` and optionally ``p`` (the
    interpolation parameter). The derivative with respect to ``x`` is obtained with ``sympy``.

    Example:
        A SIMP law with penalization power 3::

            law = MathInterpolation("Emin + x^p*(E0 - Emin)", param=3)
            E, dE = law(np.array([0.2, 0.5]), 1.0, 1e-9)

    Args:
        expression (str): The interpolation law
        param (optional): Default value of the parameter ``p``

    References:
      - `Sympy documentation <https://docs.sympy.org/latest/index.html>`_
    """
    def __init__(self, expression: str, param=None):
        from sympy import lambdify, powsimp, Symbol
        from sympy.parsing.sympy_parser import parse_expr

        self.expression = expression.replace("^", "**")
        self.param = param

        symbols = {name: Symbol(name) for name in ["x", "E0", "Emin", "p"]}
        expr = parse_expr(self.expression, local_dict=symbols)
        unknown = expr.free_symbols - set(symbols.values())
        if len(unknown) > 0:
            raise ValueError(f"Unknown variables {sorted(str(s) for s in unknown)} in expression \"{expression}\"")

        args = [symbols["x"], symbols["E0"], symbols["Emin"], symbols["p"]]
        self.f = lambdify(args, expr, "numpy")
        # Combine powers, so that e.g. p*x**p/x becomes p*x**(p - 1) and stays finite at x = 0
        self.df = lambdify(args, powsimp(expr.diff(symbols["x"])), "numpy")

    def _param(self, param):
        p = self.param if param is None else param
        return 0.0 if p is None else p

    def modulus(self, x, E0, Emin, param=None):
        return self.f(x, E0, Emin, self._param(param)) * np.ones_like(x)

    def modulus_derivative(self, x, E0, Emin, param=None):
        # A constant derivative is returned as scalar by lambdify
        return self.df(x, E0, Emin, self._param(param)) * np.ones_like(x)

    def __repr__(self):
        return f"MathInterpolation(\"{self.expression}\")"


_interpolations = {cls.name: cls for cls in [Linear, SIMP, RAMP]}


def get_interpolation(interpolation=None, **kwargs):
    """Resolve an interpolation law

    Args:
        interpolation (optional): An :class:`Interpolation` instance, a name (``"linear"``, ``"simp"``, ``"ramp"``),
          a callable ``f(x, E0, Emin, param) -> (E, dE)`` or ``None`` for the linear law
        **kwargs: Passed to the constructor when a name is given

    Returns:
        A callable returning ``(E, dE)``
    """
    if interpolation is None:
        return Linear()
    if isinstance(interpolation, str):
        key = interpolation.lower()
        if key not in _interpolations:
            raise ValueError(f"Unknown interpolation \"{interpolation}\", choose from {list(_interpolations)}")
        return _interpolations[key](**kwargs)
    if isinstance(interpolation, type) and issubclass(interpolation, Interpolation):
        return interpolation(**kwargs)
    if callable(interpolation):
        return interpolation
    raise TypeError(f"Interpolation must be an Interpolation, name or callable, not {type(interpolation).__name__}")
