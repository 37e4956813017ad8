from fastapi import FastAPI, Depends, HTTPException, Header, Query
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy import func, text
from datetime import date, datetime, timedelta
from typing import Optional, List
import json
import logging
import os
from dotenv import load_dotenv

from authors_api.database import get_db
from authors_api.mapping import describe_mapping
from authors_api import models, schemas

load_dotenv()

INTERNAL_API_KEY = os.getenv("INTERNAL_API_KEY", "internal-secret-key-12345")
IDEMPOTENCY_TTL_SECONDS = int(os.getenv("IDEMPOTENCY_TTL_SECONDS", "86400"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

START_TIME = datetime.utcnow()

api_key_header = APIKeyHeader(name="X-Internal-API-Key", auto_error=False)

app = FastAPI(
    title="Author Registry API",
    description="REST API реестра авторов с пагинацией, идемпотентностью и опциональными полями",
    version="1.0.0"
)

app_v1 = FastAPI(
    title="Author Registry API V1",
    description="Версия 1 API авторов",
    version="1.0.0"
)

app_internal = FastAPI(
    title="Author Registry Internal API",
    description="Внутренний API для служебных операций",
    version="1.0.0"
)


def verify_internal_api_key(api_key: str = Depends(api_key_header)):
    """Проверка ключа для внутреннего API"""
    if api_key != INTERNAL_API_KEY:
        raise HTTPException(
            status_code=403,
            detail="Invalid or missing internal API key"
        )
    return True

def check_idempotency(
    idempotency_key: Optional[str],
    resource_type: str,
    db: Session
) -> Optional[dict]:
    if not idempotency_key:
        return None

    stored = db.query(models.IdempotencyKey).filter(
        models.IdempotencyKey.key == idempotency_key,
        models.IdempotencyKey.resource_type == resource_type
    ).first()

    if stored:
        if (datetime.utcnow() - stored.created_at).total_seconds() < IDEMPOTENCY_TTL_SECONDS:
            return json.loads(stored.response_data)
        else:
            db.delete(stored)
            db.commit()

    return None

def store_idempotency(
    idempotency_key: str,
    resource_type: str,
    response: dict,
    db: Session
):
    if idempotency_key:
        response_copy = response.copy()
        for key, value in response_copy.items():
            if isinstance(value, (datetime, date)):
                response_copy[key] = value.isoformat()

        idempotency = models.IdempotencyKey(
            key=idempotency_key,
            resource_type=resource_type,
            response_data=json.dumps(response_copy)
        )
        # фиксируется вместе с создаваемой записью
        db.add(idempotency)

def create_paginated_response(
    items: List,
    total: int,
    page: int,
    page_size: int
) -> schemas.PaginatedResponse:
    """Создание пагинированного ответа"""
    total_pages = (total + page_size - 1) // page_size

    return schemas.PaginatedResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1
    )

def filter_fields(obj, fields: Optional[str]):
    """Фильтрация полей объекта"""
    if not fields:
        return obj

    if isinstance(obj, dict):
        data = obj
    else:
        data = obj.model_dump() if hasattr(obj, 'model_dump') else obj.__dict__

    requested_fields = [f.strip() for f in fields.split(',')]
    return {k: v for k, v in data.items() if k in requested_fields}

def ensure_email_available(db: Session, email: Optional[str], author_id: Optional[int] = None):
    if email is None:
        return
    query = db.query(models.Author).filter(models.Author.email == email)
    if author_id is not None:
        query = query.filter(models.Author.id != author_id)
    if query.first():
        raise HTTPException(status_code=400, detail="Author with this email already exists")

def reject_author_write(email: Optional[str], error: Exception):
    logger.warning(f"Rejected write for author {email!r}: {error.orig}")
    raise HTTPException(status_code=400, detail=f"Author violates a column constraint: {error.orig}")

def commit_author(db: Session, author: models.Author):
    """Фиксация записи; нарушения ограничений таблицы превращаются в 400."""
    email = author.email
    try:
        db.commit()
    except (IntegrityError, DataError) as e:
        db.rollback()
        reject_author_write(email, e)
    db.refresh(author)

def get_author_or_404(db: Session, author_id: int) -> models.Author:
    author = db.query(models.Author).filter(models.Author.id == author_id).first()
    if not author:
        raise HTTPException(status_code=404, detail="Author not found")
    return author

def check_database(db: Session) -> str:
    try:
        db.execute(text("SELECT 1"))
        return "connected"
    except Exception as e:
        logger.error(f"Database check failed: {e}")
        return f"error: {str(e)}"

@app_v1.post("/authors", response_model=schemas.AuthorResponse, status_code=201, tags=["Authors V1"])
async def create_author(
    author: schemas.AuthorCreate,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    db: Session = Depends(get_db)
):
    """Создание нового автора с поддержкой идемпотентности."""
    cached_response = check_idempotency(idempotency_key, "author", db)
    if cached_response:
        return cached_response

    ensure_email_available(db, author.email)

    db_author = models.Author(**author.model_dump())
    try:
        db.add(db_author)
        db.flush()
        response = schemas.AuthorResponse.model_validate(db_author).model_dump()
        store_idempotency(idempotency_key, "author", response, db)
        db.commit()
    except (IntegrityError, DataError) as e:
        db.rollback()
        # параллельный запрос с тем же ключом успел создать автора
        cached_response = check_idempotency(idempotency_key, "author", db)
        if cached_response:
            return cached_response
        reject_author_write(author.email, e)
    logger.info(f"Created author {response['id']}")

    return response

@app_v1.get("/authors", tags=["Authors V1"])
async def get_authors(
    page: int = Query(1, ge=1, description="Номер страницы"),
    page_size: int = Query(10, ge=1, le=100, description="Размер страницы"),
    last_name: Optional[str] = Query(None, description="Фильтр по фамилии"),
    email: Optional[str] = Query(None, description="Фильтр по email"),
    fields: Optional[str] = Query(None, description="Список полей через запятую (id,first_name,email)"),
    db: Session = Depends(get_db)
):
    """
    Получение списка авторов с пагинацией, фильтрацией и опциональными полями.

    **Пагинация**: offset-based (page/page_size)
    **Пример**: ?page=2&page_size=20&fields=id,email
    """
    query = db.query(models.Author)
    if last_name:
        query = query.filter(models.Author.last_name == last_name)
    if email:
        query = query.filter(models.Author.email == email)

    total = query.count()
    offset = (page - 1) * page_size
    authors = query.order_by(models.Author.id).offset(offset).limit(page_size).all()

    if fields:
        items = [filter_fields(schemas.AuthorResponse.model_validate(a), fields) for a in authors]
    else:
        items = [schemas.AuthorResponse.model_validate(a).model_dump() for a in authors]

    return create_paginated_response(items, total, page, page_size)

@app_v1.get("/authors/{author_id}", tags=["Authors V1"])
async def get_author(
    author_id: int,
    fields: Optional[str] = Query(None, description="Список полей через запятую"),
    db: Session = Depends(get_db)
):
    """Получение автора по ID с опциональными полями."""
    author = get_author_or_404(db, author_id)
    response = schemas.AuthorResponse.model_validate(author)

    if fields:
        return filter_fields(response, fields)
    return response

@app_v1.put("/authors/{author_id}", response_model=schemas.AuthorResponse, tags=["Authors V1"])
async def update_author(
    author_id: int,
    author: schemas.AuthorUpdate,
    db: Session = Depends(get_db)
):
    """Обновление автора. Идемпотентная операция; id и created_at не меняются."""
    db_author = get_author_or_404(db, author_id)
    ensure_email_available(db, author.email, author_id)

    for key, value in author.model_dump().items():
        setattr(db_author, key, value)

    commit_author(db, db_author)
    logger.info(f"Updated author {author_id}")
    return db_author

@app_v1.delete("/authors/{author_id}", status_code=204, tags=["Authors V1"])
async def delete_author(
    author_id: int,
    db: Session = Depends(get_db)
):
    """Удаление автора."""
    db_author = get_author_or_404(db, author_id)

    db.delete(db_author)
    db.commit()
    logger.info(f"Deleted author {author_id}")
    return None


@app_internal.get("/schema/authors", response_model=schemas.TableMappingResponse, tags=["Internal"])
async def get_author_mapping(_: bool = Depends(verify_internal_api_key)):
    """
    Отображение модели Author на таблицу (внутренний API).

    Поле -> колонка -> ограничения, как они объявлены в модели.
    """
    return describe_mapping(models.Author)

@app_internal.post("/authors/bulk-delete", response_model=schemas.BulkDeleteResponse, tags=["Internal"])
async def bulk_delete_authors(
    request: schemas.BulkDeleteRequest,
    _: bool = Depends(verify_internal_api_key),
    db: Session = Depends(get_db)
):
    """Массовое удаление авторов (внутренний API)."""
    deleted_count = 0
    failed_ids = []

    for author_id in dict.fromkeys(request.ids):
        author = db.query(models.Author).filter(models.Author.id == author_id).first()
        if author:
            db.delete(author)
            deleted_count += 1
        else:
            failed_ids.append(author_id)

    db.commit()
    logger.info(f"Bulk delete removed {deleted_count} authors, missing ids: {failed_ids}")

    return schemas.BulkDeleteResponse(
        deleted_count=deleted_count,
        failed_ids=failed_ids
    )

@app_internal.get("/statistics", response_model=schemas.StatisticsResponse, tags=["Internal"])
async def get_statistics(
    _: bool = Depends(verify_internal_api_key),
    db: Session = Depends(get_db)
):
    """Статистика по авторам (внутренний API)."""
    total_authors = db.query(models.Author).count()
    authors_with_email = db.query(models.Author).filter(models.Author.email.isnot(None)).count()

    by_date = db.query(
        models.Author.created_at,
        func.count(models.Author.id).label('count')
    ).group_by(models.Author.created_at).order_by(models.Author.created_at.desc()).limit(10).all()

    by_date_list = [
        {"date": d[0].isoformat() if d[0] else None, "count": d[1]}
        for d in by_date
    ]

    return schemas.StatisticsResponse(
        total_authors=total_authors,
        authors_with_email=authors_with_email,
        authors_by_created_date=by_date_list
    )

@app_internal.get("/health/detailed", response_model=schemas.SystemHealthResponse, tags=["Internal"])
async def detailed_health_check(
    _: bool = Depends(verify_internal_api_key),
    db: Session = Depends(get_db)
):
    """Расширенная проверка здоровья системы (внутренний API)."""
    db_status = check_database(db)

    uptime = datetime.utcnow() - START_TIME
    uptime_str = str(uptime).split('.')[0]

    idempotency_count = db.query(models.IdempotencyKey).count()

    return schemas.SystemHealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        database=db_status,
        versions=["v1"],
        uptime=uptime_str,
        idempotency_records=idempotency_count
    )

@app_internal.delete("/cleanup/old-records", tags=["Internal"])
async def cleanup_old_records(
    _: bool = Depends(verify_internal_api_key),
    days: int = Query(7, ge=1, description="Удалить записи старше N дней"),
    db: Session = Depends(get_db)
):
    """Очистка старых ключей идемпотентности (внутренний API)."""
    old_date = datetime.utcnow() - timedelta(days=days)

    idempotency_deleted = db.query(models.IdempotencyKey).filter(
        models.IdempotencyKey.created_at < old_date
    ).delete()

    db.commit()

    return {
        "message": "Cleanup completed",
        "idempotency_deleted": idempotency_deleted,
        "older_than_days": days
    }

app.mount("/api/v1", app_v1)
app.mount("/internal", app_internal)

@app.get("/", tags=["Root"])
async def root():
    """Корневой эндпоинт с информацией о доступных версиях API."""
    return {
        "message": "Author Registry API v1.0.0",
        "versions": {
            "v1": "/api/v1/docs"
        },
        "documentation": "/docs",
        "internal_api": "/internal/docs (requires X-Internal-API-Key header)",
        "features": [
            "Pagination",
            "Optional Fields",
            "Idempotency",
            "Column Mapping",
            "Internal API"
        ]
    }

@app.get("/health", tags=["Health"])
async def health_check(db: Session = Depends(get_db)):
    """Базовая проверка здоровья API (публичный эндпоинт)."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "database": check_database(db),
        "versions": ["v1"]
    }
