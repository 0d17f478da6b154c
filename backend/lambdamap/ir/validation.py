from dataclasses import dataclass

SUCCESS = "success"
FAILURE = "failure"

MESSAGE_LIMIT = 200


@dataclass(frozen=True)
class ValidationStep:
    action: str
    status: str
    message: str

    @classmethod
    def success(cls, action: str, message: str):
        return cls(action=action, status=SUCCESS, message=message[:MESSAGE_LIMIT])

    @classmethod
    def failure(cls, action: str, message: str):
        return cls(action=action, status=FAILURE, message=message[:MESSAGE_LIMIT])

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "status": self.status,
            "message": self.message,
        }
