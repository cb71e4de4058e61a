import json
import os

# Keep tests deterministic and offline-safe.
os.environ["LLM_API_KEY"] = "test-key"
os.environ["LLM_BASE_URL"] = "https://gateway.test/v1"
os.environ["LLM_MODEL"] = "test-model"
os.environ["ENABLE_METRICS"] = "true"
os.environ["LOG_JSON"] = "false"

HALLEY = {
    "name": "Halley's Comet",
    "type": "comet",
    "distance": "About 35 AU at aphelion",
    "orbit": "Orbits the Sun every 75-79 years",
    "moons": "None",
    "size": "About 15 x 8 km nucleus",
    "composition": "Ice, dust and rock",
    "special": "The only short-period comet visible to the naked eye",
    "notes": "Next perihelion is expected in 2061",
}


def tool_response(arguments) -> dict:
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "tool_calls": [
                        {
                            "id": "call_1",
                            "type": "function",
                            "function": {
                                "name": "provide_celestial_info",
                                "arguments": arguments,
                            },
                        }
                    ],
                }
            }
        ]
    }
