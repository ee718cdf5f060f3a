from pydantic import StringConstraints
from typing_extensions import Annotated


# Identity of a ledger participant, as asserted by the hosting environment.
Principal = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)
]
