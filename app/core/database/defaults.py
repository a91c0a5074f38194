"""Column defaults."""
import uuid

import ulid


def gen_ulid() -> uuid.UUID:
    """
    Generate a ULID and return it as a UUID so it fits a native uuid column.

    ULIDs are 48 bits of timestamp followed by 80 bits of randomness (https://github.com/ulid/spec), so place ids sort
    by creation time and still can't be guessed. Ids are generated client side, which lets the service know a new
    place's id before the transaction that inserts it commits.
    """
    return ulid.new().uuid
