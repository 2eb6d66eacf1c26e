class ScoreboardError(Exception):
    pass


class InvalidConfigError(ScoreboardError, ValueError):
    pass


class LiveSyncError(ScoreboardError):
    pass


class OwnershipMismatchError(LiveSyncError):
    def __init__(self, owner_uid: str, actor_uid: str):
        super().__init__("forbidden-owner-mismatch")
        self.owner_uid = owner_uid
        self.actor_uid = actor_uid
