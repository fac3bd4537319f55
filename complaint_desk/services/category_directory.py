"""
Read-only sources for the canonical category vocabulary and per-user category assignments
"""
import asyncio
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from complaint_desk.exceptions import DirectoryError
from complaint_desk.logging_config import logger
from complaint_desk.models import Category, Profile, UserCategory


class CategoryDirectory(ABC):
    """Narrow query interface; callers must not assume a storage technology"""

    @abstractmethod
    async def list_category_names(self) -> List[str]:
        """Canonical category names in display order"""
        pass

    @abstractmethod
    async def assigned_categories(self, user_email: Optional[str]) -> Set[str]:
        """Categories assigned to a user; an empty set means unrestricted"""
        pass

    async def list_categories(self) -> Set[str]:
        return set(await self.list_category_names())


class StaticCategoryDirectory(CategoryDirectory):
    """Vocabulary and assignments held in memory (configuration or tests)"""

    def __init__(
        self,
        categories: Optional[Iterable[str]] = None,
        assignments: Optional[Dict[str, Iterable[str]]] = None
    ):
        self.categories = list(categories or [])
        self.assignments = {
            email.lower(): set(names) for email, names in (assignments or {}).items()
        }

    async def list_category_names(self) -> List[str]:
        return list(self.categories)

    async def assigned_categories(self, user_email: Optional[str]) -> Set[str]:
        if not user_email:
            return set()
        return set(self.assignments.get(user_email.lower(), set()))


class SqlCategoryDirectory(CategoryDirectory):
    """Reads the categories, profiles and user_categories tables"""

    def __init__(self, session_factory: Callable[[], AbstractAsyncContextManager]):
        """
        Initialize SQL category directory

        Args:
            session_factory: Callable returning an async context manager yielding an AsyncSession
        """
        self.session_factory = session_factory

    async def list_category_names(self) -> List[str]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(Category.name).order_by(Category.name))
                names = [row[0] for row in result]
        except SQLAlchemyError as e:
            logger.error(f"Error loading categories: {str(e)}")
            raise DirectoryError("Could not load categories") from e

        logger.debug(f"Loaded {len(names)} categories from database")
        return names

    async def assigned_categories(self, user_email: Optional[str]) -> Set[str]:
        if not user_email:
            return set()

        try:
            async with self.session_factory() as session:
                assigned = await self._query_assigned(session, user_email)
        except SQLAlchemyError as e:
            logger.error(f"Error loading user categories for {user_email}: {str(e)}")
            raise DirectoryError("Could not load user categories") from e

        logger.debug(f"User {user_email} assigned categories: {sorted(assigned)}")
        return assigned

    @staticmethod
    async def _query_assigned(session: AsyncSession, user_email: str) -> Set[str]:
        result = await session.execute(
            select(Category.name)
            .join(UserCategory, UserCategory.category_id == Category.id)
            .join(Profile, Profile.id == UserCategory.user_id)
            .where(Profile.email == user_email)
        )
        return {row[0] for row in result if row[0]}


class SupabaseCategoryDirectory(CategoryDirectory):
    """Reads the same tables through the Supabase REST client"""

    def __init__(self, client: Any):
        """
        Initialize Supabase category directory

        Args:
            client: supabase.Client
        """
        self.client = client

    def _fetch_category_names(self) -> List[str]:
        response = self.client.table("categories").select("name").order("name").execute()
        return [row["name"] for row in (response.data or []) if row.get("name")]

    def _fetch_assigned(self, user_email: str) -> Set[str]:
        profile = (
            self.client.table("profiles")
            .select("id")
            .eq("email", user_email)
            .maybe_single()
            .execute()
        )
        if profile is None or not profile.data:
            logger.info(f"No profile found for user email: {user_email}")
            return set()

        response = (
            self.client.table("user_categories")
            .select("categories(name)")
            .eq("user_id", profile.data["id"])
            .execute()
        )
        return {
            (row.get("categories") or {}).get("name")
            for row in (response.data or [])
            if (row.get("categories") or {}).get("name")
        }

    async def list_category_names(self) -> List[str]:
        try:
            return await asyncio.to_thread(self._fetch_category_names)
        except Exception as e:
            logger.error(f"Error loading categories: {str(e)}")
            raise DirectoryError("Could not load categories") from e

    async def assigned_categories(self, user_email: Optional[str]) -> Set[str]:
        if not user_email:
            return set()
        try:
            return await asyncio.to_thread(self._fetch_assigned, user_email)
        except Exception as e:
            logger.error(f"Error loading user categories for {user_email}: {str(e)}")
            raise DirectoryError("Could not load user categories") from e
