from dataclasses import dataclass


@dataclass(slots=True)
class FrameworkRecord:
    """
    A framework registered with the Mesos master.

    Only active frameworks whose name is one of the watched framework
    names are kept by the leader resolver.
    """

    framework_id: str
    name: str
    active: bool
    url: str
