"""
Multilevel Laplace solver on globally refined quadrilateral meshes.

Three sibling subpackages:
- core: configuration, mesh hierarchy, DoF numberings, element + quadrature
- operators: sparse storage, assembly, boundary elimination, linear solves
- algorithm: refinement cycle driver + level transfer operators
"""

__all__ = ["core", "operators", "algorithm"]
