"""cutflow — timeline-to-render-graph compiler.

Clips, text overlays and effects are placed on typed tracks of a timeline
and compiled into a single ffmpeg invocation (inputs, filter graph, output
maps, encode flags). An interactive edit engine snaps and clamps clip
moves/resizes; a runner executes compiled plans and reports the artifact.
"""
