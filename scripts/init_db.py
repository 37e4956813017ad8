import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from authors_api.database import SessionLocal, create_tables
from authors_api.mapping import describe_mapping
from authors_api.models import Author

AUTHORS_DATA = [
    {"first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com"},
    {"first_name": "Лев", "last_name": "Толстой", "email": "tolstoy@example.com"},
    {"first_name": "Федор", "last_name": "Достоевский", "email": "dostoevsky@example.com"},
    {"first_name": "Антон", "last_name": "Чехов", "email": "chekhov@example.com"},
    {"first_name": "George", "last_name": "Orwell", "email": "orwell@example.com"},
    {"first_name": "Ernest", "last_name": "Hemingway", "email": None},
]

def seed_authors(db, authors_data=AUTHORS_DATA):
    """Наполнение таблицы авторов; повторный запуск не дублирует записи"""
    print("Добавление авторов...")

    added = 0
    for author_data in authors_data:
        query = db.query(Author)
        if author_data["email"] is None:
            query = query.filter(
                Author.first_name == author_data["first_name"],
                Author.last_name == author_data["last_name"]
            )
        else:
            query = query.filter(Author.email == author_data["email"])
        if not query.first():
            db.add(Author(**author_data))
            added += 1

    db.commit()
    print(f"✓ Добавлено {added} новых авторов (всего: {len(authors_data)})")
    return added

def print_mapping():
    mapping = describe_mapping(Author)
    print(f"\nТаблица {mapping['table']}:")
    for column in mapping["columns"]:
        flags = [
            name for name in ("primary_key", "generated", "unique")
            if column[name]
        ]
        if not column["nullable"]:
            flags.append("not null")
        if not column["updatable"]:
            flags.append("not updatable")
        length = f"({column['max_length']})" if column["max_length"] else ""
        print(f"  {column['field']:<12} -> {column['column']:<14} {column['type']}{length} {', '.join(flags)}")

def main():
    """Основная функция"""
    print("\n" + "="*50)
    print("Инициализация базы данных Author Registry")
    print("="*50 + "\n")

    try:
        print("Создание таблиц...")
        create_tables()
        print("✓ Таблицы созданы")

        db = SessionLocal()

        try:
            seed_authors(db)
            print_mapping()

            print("\n" + "="*50)
            print("✓ Инициализация завершена успешно!")
            print("="*50)
            print("\nAPI доступен по адресу: http://localhost:8000")
            print("Документация: http://localhost:8000/docs")
            print()

        except Exception as e:
            print(f"\n✗ Ошибка: {e}")
            db.rollback()
            raise
        finally:
            db.close()

    except Exception as e:
        print(f"\n✗ Критическая ошибка: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)

if __name__ == "__main__":
    main()
