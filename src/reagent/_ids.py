"""Identity tokens for sensors.

Sensors are used as map keys by identity, so each gets a stable integer at
construction. Notifications carry it so consumers can key on a plain int.
"""

import itertools

# itertools.count is thread-safe (C-level GIL atomic)
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)
