# Типы событий, которые слушает сервис
SEND_EMAIL_EVENT = "send_email"
