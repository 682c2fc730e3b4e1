import uvicorn

if __name__ == "__main__":
    print("\n" + "="*70)
    print("   🚀 Сервер записи в салон запущен")
    print("="*70)
    print(f"   📍 URL:         http://127.0.0.1:8001")
    print(f"   💚 Healthcheck: http://127.0.0.1:8001/health")
    print(f"   📖 API docs:    http://127.0.0.1:8001/docs")
    print("-"*70)
    print("   ℹ️  Напоминания запускает внешний cron: POST /api/cron/reminders")
    print("="*70 + "\n")

    uvicorn.run("salon_booking.main:app", host="127.0.0.1", port=8001, reload=True)
