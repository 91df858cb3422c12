import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, NamedTuple, Optional
from sqlalchemy.orm import Query, Session
from engigrow.core.database import commit_or_raise
from engigrow.core.errors import NotFound, ValidationError
from engigrow.models.post import Post

logger = logging.getLogger(__name__)

POST_NOT_FOUND_MESSAGE = "Post not found"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LikeStatus(NamedTuple):
    liked: bool
    like_count: int


class PostLocks:
    """One lock per post id.

    Mutations of the same post serialize on its lock while different
    posts proceed in parallel. The registry itself is guarded by a
    short-lived lock that is only held while looking up an entry.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    def for_post(self, post_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(post_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[post_id] = lock
            return lock


class PostService:
    """Post store: posts, their comment threads and like sets.

    Every mutation of a post (comment append, like toggle) runs its
    read-modify-commit under that post's lock, and loads the row with
    ``SELECT ... FOR UPDATE`` so databases with row locks also serialize
    writers from other processes.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._locks = PostLocks()

    def create(
        self,
        db: Session,
        author: str,
        body: str,
        author_email: Optional[str] = None,
    ) -> Post:
        """Create a post with no comments and no likes"""
        body = (body or "").strip()
        author = (author or "").strip()
        if not body:
            raise ValidationError("Enter a valid post")
        if not author:
            raise ValidationError("Post author is required")

        now = self._clock()
        post = Post(
            body=body,
            author=author,
            author_email=author_email,
            created_at=now,
            updated_at=now,
            comments=[],
            like_count=0,
            liked_by=[],
        )
        db.add(post)
        commit_or_raise(db, "create post")
        db.refresh(post)

        logger.info(f"Post {post.id} created by {author}")
        return post

    @staticmethod
    def list_all(db: Session) -> Query:
        """All posts, newest first.

        Returns the query itself: nothing is loaded until it is iterated,
        and iterating again re-runs it.
        """
        return db.query(Post).order_by(Post.created_at.desc(), Post.id.desc())

    @staticmethod
    def get(db: Session, post_id: int) -> Post:
        post = db.query(Post).filter(Post.id == post_id).first()
        if post is None:
            raise NotFound(POST_NOT_FOUND_MESSAGE)
        return post

    @staticmethod
    def _get_for_update(db: Session, post_id: int) -> Post:
        # populate_existing: never trust a copy already sitting in the session
        post = (
            db.query(Post)
            .filter(Post.id == post_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if post is None:
            raise NotFound(POST_NOT_FOUND_MESSAGE)
        return post

    def add_comment(
        self,
        db: Session,
        post_id: int,
        author_identity: str,
        author_display_name: str,
        text: str,
    ) -> Dict[str, Any]:
        """Append a comment to the post's thread and return it"""
        text = (text or "").strip()

        with self._locks.for_post(post_id):
            post = self._get_for_update(db, post_id)
            if not text:
                db.rollback()
                raise ValidationError("Comment text is required")

            now = self._clock()
            comment = {
                "user": author_identity,
                "username": author_display_name,
                "text": text,
                "timestamp": now.isoformat(),
            }
            # Assign a new list so the JSON column is flagged as changed
            post.comments = [*(post.comments or []), comment]
            post.updated_at = now
            commit_or_raise(db, f"add comment to post {post_id}")

        logger.info(f"Comment added to post {post_id} by {author_identity}")
        return comment

    def list_comments(self, db: Session, post_id: int) -> List[Dict[str, Any]]:
        """Comments of a post in the order they were added"""
        post = self.get(db, post_id)
        return list(post.comments or [])

    def toggle_like(
        self,
        db: Session,
        post_id: int,
        user_identity: str,
        want_liked: bool,
    ) -> int:
        """Set whether ``user_identity`` likes the post; return the new like count.

        Liking twice and unliking a post that was never liked are both no-ops.
        The count is recomputed from the like set, never adjusted on its own.
        """
        with self._locks.for_post(post_id):
            post = self._get_for_update(db, post_id)

            liked_by = list(post.liked_by or [])
            if want_liked:
                if user_identity not in liked_by:
                    liked_by.append(user_identity)
            elif user_identity in liked_by:
                liked_by.remove(user_identity)

            post.liked_by = liked_by
            post.like_count = len(liked_by)
            post.updated_at = self._clock()
            like_count = len(liked_by)
            commit_or_raise(db, f"update likes of post {post_id}")

        logger.info(
            f"User {user_identity} set like={want_liked} on post {post_id} (count={like_count})")
        return like_count

    def like_status(self, db: Session, post_id: int, user_identity: str) -> LikeStatus:
        post = self.get(db, post_id)
        liked_by = post.liked_by or []
        return LikeStatus(liked=user_identity in liked_by, like_count=len(liked_by))


post_service = PostService()
