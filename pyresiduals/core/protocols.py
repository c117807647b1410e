"""
Core protocols for PyResiduals.

Structural interfaces that backends must satisfy. Protocol (structural
typing) is used rather than ABC so that backends do not need to share a
base class.
"""

from typing import Protocol, TypeVar, runtime_checkable

D = TypeVar('D', contravariant=True)  # Design type
P = TypeVar('P')  # Parameter payload type


@runtime_checkable
class Backend(Protocol[D, P]):
    """
    Protocol for computational backends.
    
    A backend takes a validated, domain-specific design and produces a
    Result envelope. Backends never validate user input: by the time a
    design reaches solve(), every precondition has been checked.
    
    Type Parameters:
        D: The design type this backend accepts
        P: The parameter payload type this backend produces
    """
    
    @property
    def name(self) -> str:
        """
        Backend identifier.
        
        Convention: '{device}_{algorithm}'
        Examples: 'cpu_dormqr', 'gpu_ormqr_fp64'
        """
        ...
    
    def solve(self, design: D) -> 'Result[P]':
        """
        Execute the computation.
        
        Raises:
            NumericalError: If a numerical routine reports failure
        """
        ...
