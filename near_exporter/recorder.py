#!/usr/bin/env python3
"""
Validator Recorder
Background loop that periodically records the observed account's standing in
the latest validator set, on its own schedule independent of scrapes
"""

import logging
import threading
from typing import Optional

from .exceptions import NearExporterError
from .models import EpochSnapshot
from .reconciler import summarize_epoch

logger = logging.getLogger(__name__)


class ValidatorRecorder:
    """Polls `validators` on the external node and logs a summary"""

    def __init__(self, client, account_id: str, interval: float = 60):
        self.client = client
        self.account_id = account_id
        self.interval = interval
        self.last_record: Optional[EpochSnapshot] = None

    def record_once(self) -> EpochSnapshot:
        """Fetch the latest validator set and record the account's figures"""
        validator_set = self.client.validators(None)
        record = summarize_epoch(validator_set, self.account_id)
        self.last_record = record

        logger.info(
            f"Epoch {record.epoch_start_height}: {self.account_id} produced "
            f"{record.blocks_produced}/{record.blocks_expected} blocks, "
            f"stake={record.current_stake} seat_price={record.seat_price} "
            f"validators={len(validator_set.current_validators)} "
            f"kickouts={len(validator_set.prev_epoch_kickouts)}"
        )
        return record

    def run(self, stop_event: threading.Event):
        """Record every `interval` seconds until `stop_event` is set"""
        logger.info(f"Recording validators for {self.account_id} every {self.interval}s")
        while not stop_event.is_set():
            try:
                self.record_once()
            except NearExporterError as e:
                logger.warning(f"Validator recording failed: {e}")
            stop_event.wait(self.interval)

    def start(self, stop_event: threading.Event) -> threading.Thread:
        thread = threading.Thread(target=self.run, args=(stop_event,),
                                  name="validator-recorder", daemon=True)
        thread.start()
        return thread
