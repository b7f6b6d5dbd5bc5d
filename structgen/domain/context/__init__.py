 # This module assembles the final-response prompt

# +---------------------+     +---------------------+
# |       Input         |     |    Output shape     |
# |---------------------|     |---------------------|
# | Validated fields    |     | Skeleton (tags)     |
# | Resolved fields     |     | Field instructions  |
# +---------------------+     +---------------------+
#            \                        /
#             \                      /
#              v                    v
# +----------------------------------------+
# |           <request> prompt             |
# |----------------------------------------|
# | input / output_format / task           |
# | context.tool_results (only if any      |
# |   capability returned content)         |
# +----------------------------------------+
#         |
#         v
#   [generation service, plain or streamed]
