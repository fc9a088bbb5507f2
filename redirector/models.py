from sqlalchemy import BigInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from redirector.db import Base

class Redirect(Base):
    __tablename__ = "redirector"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    target_url: Mapped[str] = mapped_column("redirect_url", Text, nullable=False)
    # milliseconds since epoch
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # ttl in seconds, not an absolute instant
    ttl_seconds: Mapped[int] = mapped_column("expires", BigInteger, nullable=False)

    @property
    def expires_at_ms(self) -> int:
        return self.created_at + self.ttl_seconds * 1000
