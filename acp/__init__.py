"""acp: Air-gapped apt Cluster Patcher.

Keeps the apt state of a disconnected (air-gapped) host or cluster in sync
with the outside world, without any machine being online and offline at once.

Two routines, each in three phases:
  - ``update``  : refresh the package metadata (``apt update``).
  - ``upgrade`` : download and install the pending upgrades.

  FIND    (offline) collect the resource URIs each host needs.
  GET     (online)  download and checksum them.
  INSTALL (offline) push the downloads back onto every host.

The operator carries a tar archive across the air gap between phases.
"""

__version__ = "0.1.0"
__description__ = "Offline apt updater for air-gapped hosts and clusters"

from acp.config import AcpConfig
from acp.models.phases import Phase, Routine
from acp.phases import PHASES, build_phase

__all__ = ["AcpConfig", "Phase", "Routine", "PHASES", "build_phase", "__version__"]
