from __future__ import annotations

import logging
import sys

from seeker_client.config import load_target_config
from seeker_client.handler import SeekerBufferingHandler


def main() -> None:
    path = sys.argv[1] if len(sys.argv) > 1 else None
    cfg = load_target_config(path)

    handler = SeekerBufferingHandler(config=cfg, capacity=10)
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.addHandler(handler)

    log = logging.getLogger("examples.ship_logs")
    for i in range(25):
        log.info("order processed id=%d", i, extra={"order_id": i})
    try:
        1 / 0
    except ZeroDivisionError:
        log.exception("totals failed")

    logging.shutdown()


if __name__ == "__main__":
    main()
