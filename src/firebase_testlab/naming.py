"""Unique GCS object names for Test Lab result directories."""

from __future__ import annotations

import random
import string
from datetime import datetime

LETTER_COUNT = 4


def gcs_object_name(now: datetime | None = None, rng: random.Random | None = None) -> str:
    """Generate a results directory name the way ``gcloud firebase test`` does.

    Mirrors ``_GenerateUniqueGcsObjectName`` in the gcloud SDK, for example
    ``2017-07-12_11:36:12.467586_XVlB``. Uniqueness rests on the timestamp
    plus four random letters.
    """
    now = now or datetime.now()
    choice = (rng or random).choice
    suffix = "".join(choice(string.ascii_letters) for _ in range(LETTER_COUNT))
    return now.strftime("%Y-%m-%d_%H:%M:%S.%f") + "_" + suffix
