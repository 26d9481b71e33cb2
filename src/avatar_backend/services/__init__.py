"""Service layer for the avatar reply pipeline.

Modules, leaves first:

- process_runner: runs ffmpeg and rhubarb as subprocesses
- tts_service / stt_service: OpenAI speech synthesis and transcription
- lipsync: mp3 -> wav -> viseme transcript
- dialogue: chat model replies parsed into fragments
- assembler: per-fragment synthesis, lip sync and encoding
"""
