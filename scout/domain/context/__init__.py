# This module handles conversation memory

# +------------------------------+
# |      Checkpoint store        |   (Persistent, key-value, per conversation)
# |------------------------------|
# | Committed turns              |
# | Tool observations per turn   |
# | Engine state                 |
# +------------------------------+
#         |  load (start of turn)
#         v
# +------------------------------+
# |        Running turn          |   (Transient, owned by the orchestrator)
# |------------------------------|
# | Question                     |
# | Steps: tokens / tool calls   |
# +------------------------------+
#         |  save (only after the turn completes)
#         v
#   [next checkpoint version]
