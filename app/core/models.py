from sqlalchemy import BigInteger, Column, Date, Numeric, Text, TIMESTAMP

from app.core.database import Base


# =========================
# Acquisition
# =========================
class Acquisition(Base):
    """
    One acquisition deal.

    Both object ids point at companies.id, but there is no foreign key:
    the source data references companies that are missing from the
    companies table, which is why every read uses LEFT JOINs.
    """

    __tablename__ = "acquisitions"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    acquisition_id = Column(BigInteger, nullable=False)

    acquiring_object_id = Column(Text, index=True)
    acquired_object_id = Column(Text, index=True)

    term_code = Column(Text, index=True)  # cash / stock / cash_and_stock
    price_amount = Column(Numeric, index=True)
    price_currency_code = Column(Text, index=True)

    acquired_at = Column(Date, index=True)

    source_url = Column(Text)
    source_description = Column(Text)

    created_at = Column(TIMESTAMP)
    updated_at = Column(TIMESTAMP)


# =========================
# Company
# =========================
class Company(Base):
    __tablename__ = "companies"

    id = Column(Text, primary_key=True)  # "c:10"
    entity_id = Column(BigInteger)

    name = Column(Text, nullable=False)
    category_code = Column(Text)
    status = Column(Text)
    country_code = Column(Text)

    created_at = Column(TIMESTAMP)
    updated_at = Column(TIMESTAMP)
