icon = {
    "running": "🚀",
    "check": "✅",
    "cross": "❌",
    "retry": "🔁",
    "warning": "⚠️",
    "camera": "📷",
    "report": "📊",
}
