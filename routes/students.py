from fastapi import APIRouter, Depends, HTTPException, status

from db.database import get_db
from models.student import EnrollmentCreate, StudentCreate
from utils.errors import NotFoundError
from utils.position import get_position
from utils.students import create_student, enroll_student, get_student

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def add_student(student: StudentCreate, conn = Depends(get_db)):
    if not student.name.strip():
        raise HTTPException(status_code=400, detail="Name is required")
    return create_student(conn, student)


@router.get("/{student_id}")
async def read_student(student_id: int, conn = Depends(get_db)):
    try:
        return get_student(conn, student_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.get("/{student_id}/position")
async def read_position(student_id: int, conn = Depends(get_db)):
    """Current chapter, verse and juz memorized."""
    position = get_position(conn, student_id)
    if position is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return position


@router.post("/{student_id}/enrollments", status_code=status.HTTP_204_NO_CONTENT)
async def enroll(student_id: int, enrollment: EnrollmentCreate, conn = Depends(get_db)):
    try:
        enroll_student(conn, student_id, enrollment.halaqa_id, enrollment.teacher_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
