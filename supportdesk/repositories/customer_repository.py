"""
Customer Repository
"""
from typing import Optional

from supportdesk.models.schemas import Customer
from supportdesk.repositories.base_repository import BaseRepository
from supportdesk.utils.logger import get_logger
from supportdesk.utils.validators import normalize_email

logger = get_logger(__name__)

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


class CustomerRepository(BaseRepository):
    """Repository for customers table operations"""

    table_name = "customers"

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        try:
            response = self._table() \
                .select("id,org_id,name,email") \
                .eq("id", customer_id) \
                .limit(1) \
                .execute()

            row = self._first_row(response)
            return Customer(**row) if row else None

        except Exception as exc:
            self._handle_error(f"get_customer({customer_id})", exc)
            raise

    def find_by_email(self, org_id: str, email: str) -> Optional[Customer]:
        try:
            response = self._table() \
                .select("id,org_id,name,email") \
                .eq("org_id", org_id) \
                .ilike("email", normalize_email(email)) \
                .limit(1) \
                .execute()

            row = self._first_row(response)
            return Customer(**row) if row else None

        except Exception as exc:
            self._handle_error("find_by_email", exc)
            raise

    def find_or_create_customer(self, org_id: str, name: str, email: str) -> Customer:
        """
        Resolve a customer by email within the org, creating it if missing.

        A concurrent insert of the same email (unique violation) resolves
        to the row that won.
        """
        existing = self.find_by_email(org_id, email)
        if existing:
            return existing

        try:
            row = self._first_row(
                self._table().insert({
                    "org_id": org_id,
                    "name": name,
                    "email": normalize_email(email),
                }).execute()
            )
            if not row:
                raise ValueError("Supabase insert returned no data")
            return Customer(**row)

        except Exception as exc:
            if getattr(exc, "code", None) == UNIQUE_VIOLATION:
                winner = self.find_by_email(org_id, email)
                if winner:
                    return winner
            self._handle_error("find_or_create_customer", exc)
            raise
