from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import date, datetime

class PaginatedResponse(BaseModel):
    """Обертка для пагинированных ответов"""
    items: List[dict]
    total: int = Field(..., description="Общее количество элементов")
    page: int = Field(..., description="Текущая страница")
    page_size: int = Field(..., description="Размер страницы")
    total_pages: int = Field(..., description="Всего страниц")
    has_next: bool = Field(..., description="Есть ли следующая страница")
    has_prev: bool = Field(..., description="Есть ли предыдущая страница")

class AuthorBase(BaseModel):
    first_name: str = Field(..., description="Имя автора (до 25 символов)")
    last_name: Optional[str] = Field(None, description="Фамилия")
    email: Optional[str] = Field(None, description="Email, уникален среди авторов")

class AuthorCreate(AuthorBase):
    pass

class AuthorUpdate(AuthorBase):
    """Полная замена изменяемых полей; id и created_at не передаются"""
    pass

class AuthorResponse(AuthorBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[date] = None

class ColumnMapping(BaseModel):
    field: str = Field(..., description="Атрибут модели")
    column: str = Field(..., description="Колонка в таблице")
    type: str
    max_length: Optional[int] = None
    nullable: bool
    unique: bool
    updatable: bool
    primary_key: bool
    generated: bool = Field(..., description="Значение выдает БД при вставке")

class TableMappingResponse(BaseModel):
    """Отображение модели на таблицу (внутренний API)"""
    table: str
    columns: List[ColumnMapping]

class BulkDeleteRequest(BaseModel):
    """Запрос на массовое удаление (внутренний API)"""
    ids: List[int] = Field(..., description="Список ID для удаления")

class BulkDeleteResponse(BaseModel):
    """Ответ на массовое удаление"""
    deleted_count: int = Field(..., description="Количество удаленных записей")
    failed_ids: List[int] = Field(default_factory=list, description="ID, которые не удалось удалить")

class StatisticsResponse(BaseModel):
    """Статистика (внутренний API)"""
    total_authors: int
    authors_with_email: int
    authors_by_created_date: List[dict]

class SystemHealthResponse(BaseModel):
    """Расширенная информация о здоровье системы (внутренний API)"""
    status: str
    timestamp: datetime
    database: str
    versions: List[str]
    uptime: str
    idempotency_records: int
