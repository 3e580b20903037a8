"""entity_variants.components
=================================

Value objects produced by parsing variant definitions:

* :class:`ParameterValue`: one definition parameter, tagged with the JSON
  type it came from and carrying its legacy string form.
* :class:`VariantRecord`: every parameter of a single definition object,
  bound to the entity key it was declared under.

Both are frozen dataclasses and hashable, so they can be stored in
persistent collections and compared structurally::

    from entity_variants.components import VariantRecord
"""

from .parameter import ParameterValue
from .record import VariantRecord

__all__ = [
    "ParameterValue",
    "VariantRecord",
]
