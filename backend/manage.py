"""
Управление проектом - CLI команды.

Использование:
    python manage.py check-db
    python manage.py reset-db
    python manage.py seed-db
    python manage.py create-tables
    python manage.py purge-sessions
    python manage.py runserver
"""

import argparse
from decimal import Decimal

import uvicorn

from inbucks import config
from inbucks.core.database import create_tables as create_all_tables, drop_tables
from inbucks.core.sessions import SessionManager
from inbucks.exceptions import DuplicateIdentifier
from inbucks.services.auth_service import register_user
from inbucks.storage.sql import SqlStorage


def _storage() -> SqlStorage:
    return SqlStorage(config.DATABASE_URL)


def check_db():
    """Проверка базы данных - показать всех пользователей и офферы"""
    storage = _storage()
    storage.init_schema()

    try:
        users = storage.list_users()
        offers = storage.list_offers()

        print(f"\n📊 Пользователей в БД: {len(users)}, офферов: {len(offers)}\n")
        print("=" * 60)

        if not users:
            print("⚠️  База данных пустая.")
            print("   Зарегистрируйте пользователя через POST /api/register\n")
            return

        for user in users:
            print(f"ID: {user.id}")
            print(f"Username: {user.username or '-'}")
            print(f"Email: {user.email or '-'}")
            print(f"Пароль (хеш): {(user.password_hash or '-')[:40]}...")
            print(f"Создан: {user.created_at}")
            print("-" * 60)

        for offer in offers:
            print(f"Оффер #{offer.id} [{offer.user_id}] {offer.title}: {offer.price} / {offer.response_time_hours}ч")

    finally:
        storage.dispose()


def reset_db():
    """Сброс базы данных (удалить все таблицы и создать заново)"""
    print("⚠️  ВНИМАНИЕ: Это удалит все данные из БД!")
    confirm = input("Продолжить? (yes/no): ")

    if confirm.lower() != "yes":
        print("❌ Отменено")
        return

    storage = _storage()
    drop_tables(storage.engine)
    create_all_tables(storage.engine)
    storage.dispose()
    print("✅ База данных сброшена\n")


def seed_db():
    """Заполнить БД тестовыми пользователями и офферами"""
    storage = _storage()
    storage.init_schema()

    test_users = [
        {"email": "user1@test.com", "username": "user1", "password": "password123"},
        {"email": "user2@test.com", "username": "user2", "password": "password123"},
        {"email": "expert@test.com", "username": "expert", "password": "expert12345"},
    ]

    for user_data in test_users:
        try:
            user = register_user(storage, **user_data)
        except DuplicateIdentifier:
            print(f"⚠️  Пользователь {user_data['username']} уже существует")
            continue
        print(f"✅ Создан пользователь: {user_data['username']}")

        if user.username == "expert":
            storage.create_offer(
                user_id=user.id,
                title="Code review by email",
                description="I will review one pull request and reply with detailed notes.",
                price=Decimal("25.00"),
                response_time_hours=48,
            )
            print("✅ Создан оффер для expert")

    storage.dispose()
    print("\n✅ Тестовые данные добавлены\n")


def create_tables():
    """Создать таблицы в БД (если их нет)"""
    storage = _storage()
    storage.init_schema()
    storage.dispose()
    print("✅ Таблицы созданы\n")


def purge_sessions():
    """Удалить истёкшие сессии"""
    storage = _storage()
    storage.init_schema()
    removed = SessionManager(storage).purge_expired()
    storage.dispose()
    print(f"✅ Удалено сессий: {removed}\n")


def runserver():
    """Запуск API через uvicorn"""
    uvicorn.run("inbucks.main:app", host=config.API_HOST, port=config.API_PORT)


def main():
    """Главная функция - обработка команд"""
    parser = argparse.ArgumentParser(
        description="Управление проектом inBucks API"
    )

    parser.add_argument(
        "command",
        choices=["check-db", "reset-db", "seed-db", "create-tables", "purge-sessions", "runserver"],
        help="Команда для выполнения"
    )

    args = parser.parse_args()

    # Выполнение команды
    commands = {
        "check-db": check_db,
        "reset-db": reset_db,
        "seed-db": seed_db,
        "create-tables": create_tables,
        "purge-sessions": purge_sessions,
        "runserver": runserver,
    }

    commands[args.command]()


if __name__ == "__main__":
    main()
