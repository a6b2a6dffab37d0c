"""
Main ROV Application
====================

Entry point that wires the control core to its scheduler and output sink.

Drivers and controllers are external: a transport adapter feeds
RovBase.on_* with sensor, gamepad and controller messages and forwards
the VehicleOutputs topics. Run standalone, the core ticks with the
logging sink, which is useful to check a configuration file.
"""

import time
import signal
import sys
import argparse
import logging
from typing import Optional

from .control_loop import ControlLoop
from .outputs import VehicleOutputs
from .control.state import VehicleMode
from .vehicle import RovBase, RovConfig

logger = logging.getLogger(__name__)


class RovNode:
    """
    Runs a RovBase at a fixed rate.

    Coordinates:
    - Control core (modes, input mapping, mixing, odometry)
    - Fixed-rate tick scheduling
    - Output sink
    """

    def __init__(self, config: Optional[RovConfig] = None,
                 outputs: Optional[VehicleOutputs] = None):
        self.config = config or RovConfig()
        self.rov = RovBase(self.config, outputs)
        self.loop = ControlLoop(self.rov.tick, self.config.loop)
        self._running = False
        self._stopped = True

    def start(self) -> bool:
        """Start ticking."""
        logger.info("Starting ROV control core...")
        if not self.loop.start():
            logger.error("Control loop failed to start")
            return False
        self._running = True
        self._stopped = False
        logger.info(f"ROV control core started, mode={self.rov.mode.name}")
        return True

    def request_stop(self):
        """
        Ask run() to return.

        Takes no lock, so it is safe to call from a signal handler that may
        interrupt the main thread inside a RovBase critical section.
        """
        self._running = False

    def stop(self):
        """Stop ticking. The vehicle is left disarmed."""
        if self._stopped:
            return
        logger.info("Stopping ROV control core...")
        self._running = False
        self._stopped = True
        self.loop.stop()
        self.rov.set_mode(VehicleMode.DISARMED)
        self.rov.tick()
        logger.info("ROV control core stopped")

    def run(self):
        """Block until request_stop() is called or the process is interrupted, then stop."""
        try:
            while self._running:
                time.sleep(1.0)
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(f"Status: {self.rov.status}, loop: {self.loop.stats}")
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        self.stop()


def install_signal_handlers(node: RovNode):
    """Route SIGINT and SIGTERM to a graceful shutdown of node."""
    def signal_handler(sig, frame):
        logger.info("Shutdown signal received")
        node.request_stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="ROV supervisory control core")
    parser.add_argument("--config", "-c", default=None,
                       help="Path to JSON configuration file")
    parser.add_argument("--rate", type=float, default=None,
                       help="Control loop rate in Hz (overrides config)")
    parser.add_argument("--dump-config", metavar="PATH", default=None,
                       help="Write the effective configuration to PATH and exit")
    parser.add_argument("--verbose", "-v", action="store_true",
                       help="Verbose logging")

    args = parser.parse_args()

    # Setup logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Create config
    try:
        config = RovConfig.load(args.config) if args.config else RovConfig()
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"Failed to load config: {e}")
        sys.exit(1)

    if args.rate is not None:
        config.loop.rate_hz = args.rate

    if args.dump_config:
        config.save(args.dump_config)
        return

    try:
        node = RovNode(config)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    install_signal_handlers(node)

    if node.start():
        logger.info("ROV control core running. Press Ctrl+C to stop.")
        node.run()
    else:
        logger.error("Failed to start ROV control core")
        sys.exit(1)


if __name__ == "__main__":
    main()
