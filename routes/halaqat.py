from fastapi import APIRouter, Depends, HTTPException, status

from db.database import get_db
from models.student import HalaqaCreate, TeacherCreate
from utils.calendar import describe_active_days, format_active_days
from utils.errors import NotFoundError
from utils.students import create_halaqa, create_teacher, get_halaqa, list_halaqat

router = APIRouter()


@router.post("/halaqat", status_code=status.HTTP_201_CREATED)
async def add_halaqa(halaqa: HalaqaCreate, conn = Depends(get_db)):
    if not halaqa.name.strip():
        raise HTTPException(status_code=400, detail="Name is required")
    return create_halaqa(conn, halaqa)


@router.get("/halaqat")
async def read_halaqat(conn = Depends(get_db)):
    return [
        {**halaqa.model_dump(), "schedule": describe_active_days(format_active_days(halaqa.active_days))}
        for halaqa in list_halaqat(conn)
    ]


@router.get("/halaqat/{halaqa_id}")
async def read_halaqa(halaqa_id: int, conn = Depends(get_db)):
    try:
        return get_halaqa(conn, halaqa_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.post("/teachers", status_code=status.HTTP_201_CREATED)
async def add_teacher(teacher: TeacherCreate, conn = Depends(get_db)):
    if not teacher.name.strip():
        raise HTTPException(status_code=400, detail="Name is required")
    teacher_id = create_teacher(conn, teacher.name.strip())
    return {"id": teacher_id, "name": teacher.name.strip()}
