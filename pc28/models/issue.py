from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, BigInteger, SmallInteger, Boolean, UniqueConstraint, func
from pc28.db.session import Base

class Issue(Base):
    __tablename__ = "issue"
    __table_args__ = (UniqueConstraint("issue_no", name="uq_issue_no"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    issue_no: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)  # 开奖区块高度
    block_hash: Mapped[str] = mapped_column(String(80), nullable=False)

    open_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    n1: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    n2: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    n3: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    sum_value: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    bs: Mapped[int] = mapped_column(SmallInteger, nullable=False)   # 1大 2小
    oe: Mapped[int] = mapped_column(SmallInteger, nullable=False)   # 1单 2双
    is_pair: Mapped[bool] = mapped_column(Boolean, default=False)
    is_leopard: Mapped[bool] = mapped_column(Boolean, default=False)
    combo: Mapped[str] = mapped_column(String(8), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
