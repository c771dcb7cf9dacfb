"""NiceGUI reader interface with a streaming chat sidebar."""

import asyncio
import os
from datetime import datetime

from nicegui import app, ui

from opendocs.documents.pdf_reader import PDFParseError
from opendocs.models.schemas import Role
from opendocs.relay import prompts
from opendocs.transport.bridge import ChatChannel
from opendocs.transport.http import HttpTransport
from opendocs.ui.session import SCOPE_LABELS, ContextScope, ReaderSession

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
STORAGE_SECRET = os.getenv("NICEGUI_STORAGE_SECRET", "opendocs-secret")
DEFAULT_API_KEY = os.getenv("LLM_API_KEY", os.getenv("GEMINI_API_KEY", ""))

CUSTOM_CSS = """
<style>
    body { background: #f5f5f5; }
    .panel {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }
    .header { background: linear-gradient(135deg, #1e3a8a 0%, #0f766e 100%); }
    .message-user {
        background: #1e3a8a;
        color: white;
        border-radius: 18px 18px 4px 18px;
    }
    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }
    .typing-dot {
        width: 8px; height: 8px;
        background: #0f766e;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }
    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }
</style>
"""


def _now() -> str:
    return datetime.now().strftime("%I:%M %p")


def _user_settings() -> dict:
    """Per-user settings, seeded from the environment on first visit."""
    settings = app.storage.user
    settings.setdefault("api_key", DEFAULT_API_KEY)
    settings.setdefault("model", "")
    settings.setdefault("custom_instructions", "")
    return settings


async def _ask_for_path() -> str | None:
    """Prompt for a PDF path when no native file dialog is available."""
    with ui.dialog() as dialog, ui.card().classes("w-[32rem]"):
        ui.label("Open PDF").classes("text-lg font-semibold")
        path_input = ui.input("Path to a .pdf file").classes("w-full")
        with ui.row().classes("w-full justify-end"):
            ui.button("Cancel", on_click=lambda: dialog.submit(None)).props("flat")
            ui.button("Open", on_click=lambda: dialog.submit(path_input.value))
    path = await dialog
    dialog.clear()
    if not path or not str(path).lower().endswith(".pdf"):
        return None
    return str(path).strip()


async def choose_pdf_file() -> str | None:
    """Ask the user for a PDF file.

    Uses the native file dialog in desktop mode.

    Returns:
        The chosen path, or None if the user cancelled.
    """
    window = app.native.main_window
    if window is not None:
        paths = await window.create_file_dialog(
            allow_multiple=False, file_types=("PDF files (*.pdf)",)
        )
        return paths[0] if paths else None
    return await _ask_for_path()


@ui.page("/")
def reader_page() -> None:
    """Main reader page."""
    ui.add_head_html(CUSTOM_CSS)
    session = ReaderSession()
    channel = ChatChannel(HttpTransport(API_BASE_URL))
    settings = _user_settings()

    messages_container: ui.column
    input_field: ui.textarea
    send_btn: ui.button
    stop_btn: ui.button

    def render_bubble(role: Role, content: str, time: str) -> ui.markdown:
        is_user = role == Role.USER
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"
        with ui.row().classes(f"w-full {align}"):
            with ui.column().classes("max-w-[85%] gap-1"):
                with ui.element("div").classes(f"px-4 py-2 {bubble}"):
                    body = ui.markdown(content).classes("text-sm")
                ui.label(time).classes("text-[10px] text-gray-400")
        return body

    def refresh_messages() -> None:
        messages_container.clear()
        with messages_container:
            if not session.messages:
                if session.document is not None:
                    render_bubble(Role.ASSISTANT, prompts.WELCOME_MESSAGE, _now())
                else:
                    with ui.column().classes("w-full h-48 items-center justify-center gap-2"):
                        ui.icon("picture_as_pdf").classes("text-5xl text-gray-300")
                        ui.label("Open a PDF to start").classes("text-gray-400")
                return
            for msg in session.messages:
                render_bubble(msg.role, msg.content, "")

    def render_status_indicator() -> ui.row:
        with ui.row().classes("w-full justify-start") as row:
            with ui.element("div").classes("message-assistant px-4 py-3"):
                with ui.row().classes("gap-1"):
                    for _ in range(3):
                        ui.element("div").classes("typing-dot")
        return row

    def set_streaming(streaming: bool) -> None:
        send_btn.set_enabled(not streaming)
        stop_btn.set_visibility(streaming)

    async def open_document() -> None:
        path = await choose_pdf_file()
        if path is None:
            return
        try:
            await asyncio.to_thread(session.open_document, path)
        except PDFParseError as e:
            ui.notify(str(e), type="negative")
            return
        document_label.set_text(session.document_label)
        page_controls.set_visibility(True)
        for page_input in (current_page_input, first_page_input, last_page_input):
            page_input.max = session.document.pages
        await session.reset_chat()
        set_streaming(False)
        refresh_messages()

    async def send_message() -> None:
        text = input_field.value.strip()
        if not text or session.is_streaming:
            return
        if not settings["api_key"].strip():
            ui.notify(prompts.API_KEY_MISSING_MESSAGE, type="warning")
            return

        input_field.value = ""
        session.add_message(Role.USER, text)
        refresh_messages()

        try:
            request = await asyncio.to_thread(
                session.build_request,
                settings["api_key"],
                settings["model"],
                settings["custom_instructions"],
            )
        except PDFParseError as e:
            session.messages.pop()
            refresh_messages()
            ui.notify(str(e), type="negative")
            return

        with messages_container:
            status_row = render_status_indicator()

        accumulated = ""
        response_body: ui.markdown | None = None
        msg_time = _now()

        def on_fragment(content: str) -> None:
            nonlocal accumulated, response_body
            if response_body is None:
                status_row.delete()
                with messages_container:
                    response_body = render_bubble(Role.ASSISTANT, "", msg_time)
            accumulated += content
            response_body.set_content(accumulated)

        def on_done() -> None:
            if response_body is None:
                status_row.delete()
            if accumulated:
                session.add_message(Role.ASSISTANT, accumulated)
            set_streaming(False)
            refresh_messages()

        def on_error(error: str) -> None:
            if response_body is None:
                status_row.delete()
            session.add_message(Role.ASSISTANT, f"{accumulated}\n\n**{error}**".strip())
            set_streaming(False)
            refresh_messages()
            ui.notify(error, type="negative")

        set_streaming(True)
        session.subscription = channel.stream_chat(request, on_fragment, on_done, on_error)

    async def stop_generating() -> None:
        if session.subscription is not None:
            await session.subscription.cancel()

    async def new_chat() -> None:
        await session.reset_chat()
        set_streaming(False)
        refresh_messages()

    def open_settings() -> None:
        with ui.dialog() as dialog, ui.card().classes("w-[36rem]"):
            ui.label("Settings").classes("text-lg font-semibold")
            ui.input("API key", password=True, password_toggle_button=True).bind_value(
                settings, "api_key"
            ).classes("w-full")
            ui.input("Model (leave empty for the default)").bind_value(settings, "model").classes(
                "w-full"
            )
            ui.textarea("Custom instructions").bind_value(
                settings, "custom_instructions"
            ).classes("w-full")
            with ui.row().classes("w-full justify-end"):
                ui.button("Close", on_click=dialog.close)
        dialog.open()

    # === UI Layout ===
    with ui.row().classes("w-full header px-5 py-3 items-center justify-between"):
        with ui.row().classes("items-center gap-3"):
            ui.icon("menu_book").classes("text-white text-3xl")
            ui.label("OpenDocs").classes("text-lg font-semibold text-white")
        with ui.row().classes("items-center gap-2"):
            ui.button(icon="folder_open", on_click=open_document).props("flat round color=white")
            ui.button(icon="add_comment", on_click=new_chat).props("flat round color=white")
            ui.button(icon="settings", on_click=open_settings).props("flat round color=white")

    with ui.row().classes("w-full p-4 gap-4 no-wrap").style("height: calc(100vh - 5rem)"):
        # Document
        with ui.column().classes("w-80 panel p-4 gap-3"):
            document_label = ui.label(session.document_label).classes("font-medium")
            with ui.column().classes("w-full gap-2") as page_controls:
                ui.select(SCOPE_LABELS, label="Context").bind_value(session, "scope").classes(
                    "w-full"
                )
                current_page_input = (
                    ui.number("Current page", min=1, precision=0)
                    .bind_value(session, "current_page")
                    .bind_visibility_from(session, "scope", value=ContextScope.PAGE.value)
                )
                with ui.row().classes("gap-2").bind_visibility_from(
                    session, "scope", value=ContextScope.RANGE.value
                ):
                    first_page_input = ui.number("From", min=1, precision=0).bind_value(
                        session, "first_page"
                    ).classes("w-24")
                    last_page_input = ui.number("To", min=1, precision=0).bind_value(
                        session, "last_page"
                    ).classes("w-24")
                ui.checkbox("Send the PDF file to the model").bind_value(session, "send_file")
            page_controls.set_visibility(False)

        # Chat
        with ui.column().classes("flex-grow h-full panel"):
            with (
                ui.scroll_area().classes("flex-grow w-full bg-gray-50"),
                ui.column().classes("w-full p-4"),
            ):
                messages_container = ui.column().classes("w-full gap-3")
                refresh_messages()

            with ui.row().classes("w-full p-3 gap-2 items-end bg-white border-t"):
                input_field = (
                    ui.textarea(placeholder="Ask about the document...")
                    .props("autogrow outlined dense rows=1")
                    .classes("flex-grow")
                    .on("keydown.enter.prevent", send_message)
                )
                stop_btn = ui.button(icon="stop", on_click=stop_generating).props(
                    "round unelevated color=negative"
                )
                send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")
                stop_btn.set_visibility(False)


def main() -> None:
    native = os.getenv("OPENDOCS_NATIVE", "0") == "1"
    options = {"native": True, "window_size": (1280, 860)} if native else {}
    ui.run(
        title="OpenDocs",
        port=int(os.getenv("UI_PORT", "8080")),
        reload=False,
        storage_secret=STORAGE_SECRET,
        **options,
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()
