"""Campus map client: fetch the shortest walking path and draw it on the map."""
