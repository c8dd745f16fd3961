from typing import Optional

LIVE_WORKSPACE_NAME = "live"


def is_eligible(
    target_workspace_override: Optional[str], event_workspace: str, index_all_workspaces: bool
) -> bool:
    """
    Whether a change in the given workspace is indexed at all.

    Unless all workspaces are indexed, only changes that end up in the live
    workspace are: the publishing target if one is given, otherwise the
    workspace the node was read from.
    """
    if index_all_workspaces:
        return True

    if target_workspace_override is not None:
        return target_workspace_override == LIVE_WORKSPACE_NAME

    return event_workspace == LIVE_WORKSPACE_NAME
