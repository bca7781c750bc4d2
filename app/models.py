from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class User(Base):
    """Staff account (customer service, admin, finance)"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    role = Column(String(50), nullable=False)  # customer_service, admin, finance
    status = Column(String(20), default="active", nullable=False)  # active, inactive
    created_at = Column(DateTime, server_default=func.now())


class Trainer(Base):
    __tablename__ = "trainers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    status = Column(String(20), default="active", nullable=False)  # active, inactive
    created_at = Column(DateTime, server_default=func.now())

    courses = relationship("Course", back_populates="trainer")


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), nullable=True, index=True)

    # Authoritative schedule length: +1 per postponement, -1 per cancelled makeup
    lectures_count = Column(Integer, default=0, nullable=False)

    # Cadence
    start_date = Column(Date, nullable=True)
    lecture_days = Column(JSON, default=list, nullable=True)  # ["sun", "tue", ...]
    lecture_time = Column(String(5), nullable=True)  # HH:MM default time

    status = Column(String(20), default="active", nullable=False)  # active, paused, finished

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    trainer = relationship("Trainer", back_populates="courses")
    lectures = relationship(
        "Lecture",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Lecture.lecture_number",
    )


class Lecture(Base):
    """One session in a course schedule.

    A postponed lecture is never deleted: its attendance switches to a
    postponed value and a makeup lecture pointing back at it through
    ``makeup_for`` carries the new slot.
    """

    __tablename__ = "lectures"
    __table_args__ = (UniqueConstraint("course_id", "lecture_number", name="uk_course_lecture"),)

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    lecture_number = Column(Integer, nullable=False)  # Position in the schedule

    # Scheduling
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=True)  # HH:MM, falls back to course.lecture_time

    # pending -> held (present/absent/partially/excused) or postponed_*
    attendance = Column(String(32), default="pending", nullable=False, index=True)

    # Makeup linkage: unique so an original has at most one makeup
    is_makeup = Column(Boolean, default=False, nullable=False)
    makeup_for = Column(Integer, ForeignKey("lectures.id"), nullable=True, unique=True)

    notes = Column(Text, nullable=True)
    postponed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    course = relationship("Course", back_populates="lectures")
    original_lecture = relationship("Lecture", remote_side=[id], uselist=False)
