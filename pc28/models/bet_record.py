from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Numeric, DateTime, BigInteger, SmallInteger, func
from pc28.db.session import Base

class BetRecord(Base):
    __tablename__ = "bet_record"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    wager_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    game_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    issue_no: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    bet_type: Mapped[str] = mapped_column(String(16), nullable=False)
    label: Mapped[str] = mapped_column(String(16), nullable=False)
    odds: Mapped[float] = mapped_column(Numeric(10,4), nullable=False)
    stake_amount: Mapped[float] = mapped_column(Numeric(16,2), nullable=False)
    result_status: Mapped[int] = mapped_column(SmallInteger, default=0)  # 1赢 2输
    win_amount: Mapped[float] = mapped_column(Numeric(16,2), default=0)
    settled_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
