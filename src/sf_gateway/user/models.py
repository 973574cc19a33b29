from dataclasses import dataclass


@dataclass
class User:
    id: str
    username: str
    email: str
    password_hash: str = ""
    # Plain-text password of accounts created before hashing was introduced
    legacy_password: str = ""
    profile_picture: str = ""
    last_seen: int = 0
    is_active: bool = True

    @property
    def needs_rehash(self) -> bool:
        return not self.password_hash and bool(self.legacy_password)
